# This file is a part of ndsfs.
#
# Copyright (c) 2017-2021 Ian Burgwin
# This file is licensed under The MIT License (MIT).
# You can find the full license text in LICENSE.md in the root of this project.

import logging
from enum import Enum
from typing import TYPE_CHECKING, NamedTuple

from .common import AllocationFailureError, MalformedTableError, TreeDepthError
from .tables import ROOT_ID

if TYPE_CHECKING:
    from typing import Iterator, List, Optional, Set, Tuple, Union
    from .tables import TableDecoder

__all__ = ['NAME_ENCODING', 'MAX_DEPTH', 'EntryType', 'Entry', 'NitroTree', 'build_tree']

logger = logging.getLogger(__name__)

# names are raw bytes; latin-1 maps each byte to one code point and back
NAME_ENCODING = 'latin-1'

MAX_DEPTH = 128

# control byte + name, plus the 16-bit id for directories
FILE_RECORD_OVERHEAD = 1
DIR_RECORD_OVERHEAD = 3


class EntryType(Enum):
    FILE = 'file'
    DIR = 'dir'


class Entry(NamedTuple):
    """
    One file or directory in the tree.

    slot is the position in the owning NitroTree. parent and children are slots too, so there are no reference
    cycles. The root is its own parent.
    """

    slot: int
    id: int
    type: EntryType
    name: bytes
    size: int
    link_count: int
    parent: int
    children: 'Tuple[int, ...]'

    @property
    def is_dir(self) -> bool:
        return self.type is EntryType.DIR


class NitroTree:
    """Immutable directory tree. Entries are stored in depth-first discovery order, so the root is always index 0."""

    def __init__(self, entries: 'Tuple[Entry, ...]'):
        self._entries = entries
        self.file_count = sum(not e.is_dir for e in entries)
        self.dir_count = len(entries) - self.file_count

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index: int) -> Entry:
        return self._entries[index]

    def __iter__(self) -> 'Iterator[Entry]':
        return iter(self._entries)

    @property
    def root(self) -> Entry:
        return self._entries[0]

    def parent_of(self, entry: Entry) -> Entry:
        return self._entries[entry.parent]

    def children_of(self, entry: Entry) -> 'Iterator[Entry]':
        return (self._entries[i] for i in entry.children)

    def walk(self, entry: Entry = None) -> 'Iterator[Entry]':
        """Yield entry and everything below it, depth-first, children in table order."""
        if entry is None:
            entry = self.root
        yield entry
        for child in self.children_of(entry):
            yield from self.walk(child)

    def path_of(self, entry: Entry) -> bytes:
        if entry.slot == self.root.slot:
            return b'/'
        parts = []
        while entry.slot != self.root.slot:
            parts.append(entry.name)
            entry = self.parent_of(entry)
        return b'/' + b'/'.join(reversed(parts))

    def _find_child(self, directory: Entry, name: bytes) -> 'Optional[Entry]':
        for child in self.children_of(directory):
            if child.name == name:
                return child
        return None

    def resolve(self, path: 'Union[str, bytes]') -> 'Optional[Entry]':
        """
        Find the entry at a slash-separated path, or None.

        Names are compared byte-for-byte. "." and ".." inside the path have no special meaning.
        """
        if isinstance(path, str):
            path = path.encode(NAME_ENCODING)
        if path == b'/':
            return self.root
        if path[:1] == b'/':
            path = path[1:]

        *parents, last = path.split(b'/')
        curr = self.root
        for part in parents:
            curr = self._find_child(curr, part)
            if curr is None:
                return None
        return self._find_child(curr, last)


class _TreeBuilder:
    def __init__(self, decoder: 'TableDecoder'):
        self.decoder = decoder
        self.entries: 'List[Optional[Entry]]' = []
        self.seen_dirs: 'Set[int]' = set()

    def _reserve(self) -> int:
        self.entries.append(None)
        return len(self.entries) - 1

    def build(self) -> NitroTree:
        root_index = self._reserve()
        self.seen_dirs.add(ROOT_ID)
        self._build_dir(root_index, ROOT_ID, b'', root_index, 0)
        return NitroTree(tuple(self.entries))

    def _build_dir(self, index: int, dir_id: int, name: bytes, parent: int, depth: int):
        if depth > MAX_DEPTH:
            raise TreeDepthError(f'directory {dir_id:#06x} is nested deeper than {MAX_DEPTH} levels')

        dec = self.decoder
        main_entry = dec.read_fnt_main(dir_id)
        cursor = dec.sub_table_start(main_entry)
        next_file_id = main_entry.next_id

        children = []
        size = 0
        # . and ..
        links = 2

        while True:
            control = dec.read_byte(cursor)
            if control == 0:
                break
            name_len = control & 0x7F
            child_name = dec.read_bytes(cursor + 1, name_len)
            cursor += 1 + name_len
            child_index = self._reserve()

            if control & 0x80:
                child_id = dec.read_u16(cursor)
                cursor += 2
                if child_id in self.seen_dirs:
                    raise MalformedTableError(f'directory id {child_id:#06x} is referenced more than once '
                                              f'(found again in {dir_id:#06x})')
                self.seen_dirs.add(child_id)
                self._build_dir(child_index, child_id, child_name, index, depth + 1)
                links += 1
                size += name_len + DIR_RECORD_OVERHEAD
            else:
                fat_entry = dec.read_fat(next_file_id)
                self.entries[child_index] = Entry(slot=child_index, id=next_file_id, type=EntryType.FILE,
                                                  name=child_name, size=fat_entry.size, link_count=2, parent=index,
                                                  children=())
                next_file_id += 1
                size += name_len + FILE_RECORD_OVERHEAD

            children.append(child_index)

        self.entries[index] = Entry(slot=index, id=dir_id, type=EntryType.DIR, name=name, size=size,
                                    link_count=links, parent=parent, children=tuple(children))


def build_tree(decoder: 'TableDecoder') -> NitroTree:
    """
    Walk the FNT from the root and build the whole tree.

    Any failure aborts the build; nothing partially built is returned.
    """
    builder = _TreeBuilder(decoder)
    try:
        tree = builder.build()
    except MemoryError as e:
        raise AllocationFailureError(f'out of memory after {len(builder.entries)} entries') from e
    finally:
        builder.entries = []
    logger.debug('built tree: %d directories, %d files', tree.dir_count, tree.file_count)
    return tree
