"""Legacy TXT formats: conversion to CSV and ListNamesAlias export."""

from .converter import AliasFormatConverter, ConversionResult, clean_field_name
from .list_names import ListNamesAliasExporter, IGNORED_PRIMARY_NAME

__all__ = [
    "AliasFormatConverter",
    "ConversionResult",
    "clean_field_name",
    "ListNamesAliasExporter",
    "IGNORED_PRIMARY_NAME",
]
