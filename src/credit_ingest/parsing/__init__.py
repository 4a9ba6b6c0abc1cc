"""Parsers turning raw uploaded documents into generic trees."""

from credit_ingest.parsing.xml_tree import TreeParseError, parse_xml

__all__ = ["TreeParseError", "parse_xml"]
