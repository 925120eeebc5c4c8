"""Keep a Solr index in step with an application's entities and search it.

Typical start-up::

    sync = SolrSync(ConfigManager().load())
    widgets = sync.declare("Widget", fetch_many=load_widgets)
    widgets.attribute("title", stored=True)

The persistence layer then reports writes through ``sync.dispatcher`` and
searches go through ``sync.find`` or ``sync.faceted_query``.
"""

from importlib import metadata as _metadata

from .config import ConfigManager, SolrSyncConfig
from .errors import (
    ArgumentError,
    ConfigConflict,
    ConfigError,
    NestedBatchError,
    ObserverConfigError,
    RehydrationError,
    SolrConnectionError,
    SolrResponseError,
    SolrSyncError,
)
from .query import Sequence
from .service import SolrSync

try:
    __version__ = _metadata.version("solrsync")
except _metadata.PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "ArgumentError",
    "ConfigConflict",
    "ConfigError",
    "ConfigManager",
    "NestedBatchError",
    "ObserverConfigError",
    "RehydrationError",
    "Sequence",
    "SolrConnectionError",
    "SolrResponseError",
    "SolrSync",
    "SolrSyncConfig",
    "SolrSyncError",
    "__version__",
]
