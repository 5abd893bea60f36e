"""Bundled data files for rolesync."""
