"""objectdocs: users, posts and files kept as JSON documents in an object store."""

__version__ = "0.1.0"

from objectdocs.config import StoreConfig, load_config  # noqa: E402
from objectdocs.context import OperationContext  # noqa: E402
from objectdocs.document_store import DocumentStore  # noqa: E402
from objectdocs.models import File, Page, PageRequest, Post, PostStatus, User  # noqa: E402

__all__ = [
    "DocumentStore",
    "File",
    "OperationContext",
    "Page",
    "PageRequest",
    "Post",
    "PostStatus",
    "StoreConfig",
    "User",
    "__version__",
    "load_config",
]
