"""Per-entity repositories over the object store."""

from objectdocs.repositories.base import BaseRepository
from objectdocs.repositories.files import FilesRepository, content_key, metadata_key
from objectdocs.repositories.posts import PostsRepository, post_key
from objectdocs.repositories.users import UsersRepository, user_key

__all__ = [
    "BaseRepository",
    "FilesRepository",
    "PostsRepository",
    "UsersRepository",
    "content_key",
    "metadata_key",
    "post_key",
    "user_key",
]
