"""Solr wire client and response models."""

from .client import SearchClient
from .models import ResponseBody, ResponseHeader, SelectResponse

__all__ = ["SearchClient", "SelectResponse", "ResponseBody", "ResponseHeader"]
