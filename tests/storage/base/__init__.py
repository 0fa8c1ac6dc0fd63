"""Base test suites for storage backends."""

from .document_suite import BaseDocumentStoreTestSuite, DocumentStoreContract

__all__ = ["BaseDocumentStoreTestSuite", "DocumentStoreContract"]
