"""
Caching for the team directory.

Directory listings are cached per filter combination. Keys embed a version
number that is bumped whenever a user is saved or deleted, which drops every
cached listing at once without needing pattern deletes.
"""
import hashlib
import logging

from django.core.cache import cache
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver

from .models import User

logger = logging.getLogger(__name__)

USER_DIRECTORY_KEY_PREFIX = 'user_directory:'
USER_DIRECTORY_VERSION_KEY = 'user_directory:version'

# Profiles change rarely
USER_DIRECTORY_CACHE_TTL = 600  # 10 minutes


def get_user_directory_version() -> int:
    return cache.get(USER_DIRECTORY_VERSION_KEY, 1)


def get_user_directory_cache_key(search: str = '', role: str = '', workspace: str = '') -> str:
    """Get cache key for a filtered directory listing"""
    filters = f"{search.lower()}|{role}|{workspace}"
    digest = hashlib.md5(filters.encode()).hexdigest()
    return f"{USER_DIRECTORY_KEY_PREFIX}v{get_user_directory_version()}:{digest}"


def invalidate_user_directory_cache():
    version = get_user_directory_version()
    cache.set(USER_DIRECTORY_VERSION_KEY, version + 1, None)
    logger.debug(f"Invalidated user directory cache (version {version} -> {version + 1})")


@receiver(post_save, sender=User)
def user_saved(sender, instance, **kwargs):
    invalidate_user_directory_cache()


@receiver(post_delete, sender=User)
def user_deleted(sender, instance, **kwargs):
    invalidate_user_directory_cache()
