from .access_tokens import AccessGrant, AccessTokenStore
from .amount_parser import AmountParser
from .categorization import CategorizationPipeline, chunk
from .classifier import (
    CategoryAssignment,
    ClassifierError,
    ClassifierUnavailableError,
    TransactionClassifier,
    TransactionSample,
)
from .concurrency import ConcurrencyQueue
from .export import ExportFormat, ExportService
from .nlp_service import CategoryNLPService, get_nlp_service
from .statement import StatementError, StatementParser
from .vault_service import VaultService

__all__ = [
    "AccessGrant",
    "AccessTokenStore",
    "AmountParser",
    "CategorizationPipeline",
    "CategoryAssignment",
    "CategoryNLPService",
    "ClassifierError",
    "ClassifierUnavailableError",
    "ConcurrencyQueue",
    "ExportFormat",
    "ExportService",
    "StatementError",
    "StatementParser",
    "TransactionClassifier",
    "TransactionSample",
    "VaultService",
    "chunk",
    "get_nlp_service",
]
