"""Data Connectors for the Store Insights service"""

from app.connectors.base import SourceFetchError, StoreDataGateway
from app.connectors.sanity import SanityConnector

__all__ = [
    "SourceFetchError",
    "StoreDataGateway",
    "SanityConnector"
]
