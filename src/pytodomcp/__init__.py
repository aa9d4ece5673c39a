"""pytodomcp: a document-backed todo tool server speaking MCP over stdio."""

APP_NAME = "pytodomcp"
__version__ = "0.1.0"
