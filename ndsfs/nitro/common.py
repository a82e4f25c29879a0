# This file is a part of ndsfs.
#
# Copyright (c) 2017-2021 Ian Burgwin
# This file is licensed under The MIT License (MIT).
# You can find the full license text in LICENSE.md in the root of this project.

from errno import EACCES, EINVAL, EISDIR, ENOENT, ENOTDIR, EROFS
from functools import wraps

__all__ = ['NitroError', 'ImageError', 'OutOfBoundsError', 'MalformedTableError', 'TreeDepthError',
           'AllocationFailureError', 'NitroOSError', 'NitroFileNotFoundError', 'NitroNotADirectoryError',
           'NitroIsADirectoryError', 'NitroPermissionError', 'ReadOnlyFilesystemError', 'InvalidArgumentError']


class NitroError(Exception):
    """Common base class for all ndsfs errors."""


class ImageError(NitroError):
    """The ROM image could not be decoded. Raised while loading, never after a successful load."""


class OutOfBoundsError(ImageError):
    """A read would go past the end of the image."""

    def __init__(self, offset: int, size: int, image_size: int):
        super().__init__(f'read of {size:#x} bytes at {offset:#x} exceeds image size {image_size:#x}')
        self.offset = offset
        self.size = size
        self.image_size = image_size


class MalformedTableError(ImageError):
    """An FNT or FAT record is structurally inconsistent."""


class TreeDepthError(MalformedTableError):
    """Directory nesting is deeper than the builder allows."""


class AllocationFailureError(ImageError):
    """Ran out of memory while building the tree."""


class NitroOSError(NitroError):
    """Base class for errors local to a single filesystem call."""

    errno = 0

    def __init__(self, path, msg: str = None):
        super().__init__(msg or f'{path!r}')
        self.path = path


class NitroFileNotFoundError(NitroOSError):
    """Invalid path in the NitroFS tree."""

    errno = ENOENT


class NitroNotADirectoryError(NitroOSError):
    errno = ENOTDIR


class NitroIsADirectoryError(NitroOSError):
    errno = EISDIR


class NitroPermissionError(NitroOSError):
    """Write access was requested."""

    errno = EACCES


class ReadOnlyFilesystemError(NitroOSError):
    """Something tried to create an entry."""

    errno = EROFS


class InvalidArgumentError(NitroOSError):
    errno = EINVAL


def _raise_if_closed(method):
    @wraps(method)
    def decorator(self, *args, **kwargs):
        if self.closed:
            raise ValueError('I/O operation on closed file.')
        return method(self, *args, **kwargs)
    return decorator
