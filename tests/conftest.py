"""
Shared fixtures for the ndsfs test suite.

ROM images are assembled in memory: a 0x200 byte header with the FNT/FAT fields filled in, the FNT, the FAT, and the
file data, in that order. Nothing here needs libfuse.
"""

import struct
from typing import Dict, List, Tuple, Union

import pytest

from ndsfs.nitro import ImageView, NitroFSReader

HEADER_AREA = 0x200
ROOT_ID = 0xF000


def _align(value: int, alignment: int = 4) -> int:
    return (value + alignment - 1) // alignment * alignment


def assemble(fnt: bytes, fat: 'List[Tuple[int, int]]' = (), data: 'Dict[int, bytes]' = None, size: int = None,
             fnt_offset: int = HEADER_AREA, title: bytes = b'TESTROM', code: bytes = b'NTRJ') -> bytes:
    """
    Build an image from raw table bytes.

    fat is a list of (start, end) pairs, data maps absolute offsets to bytes to place there. The image is padded with
    zeros to size, or to the furthest FAT end / data byte if size is not given.
    """
    fat_offset = _align(fnt_offset + len(fnt))
    fat_raw = b''.join(struct.pack('<II', start, end) for start, end in fat)

    image = bytearray(fnt_offset)
    image[0:12] = title.ljust(12, b'\0')
    image[12:16] = code.ljust(4, b'\0')
    image[0x40:0x50] = struct.pack('<IIII', fnt_offset, len(fnt), fat_offset, len(fat_raw))
    image += fnt
    image += bytes(fat_offset - len(image))
    image += fat_raw

    end = len(image)
    for _, fat_end in fat:
        end = max(end, fat_end)
    data = data or {}
    for offset, chunk in data.items():
        end = max(end, offset + len(chunk))
    if size is not None:
        end = size
    image += bytes(max(end - len(image), 0))
    for offset, chunk in data.items():
        image[offset:offset + len(chunk)] = chunk
    return bytes(image[:end])


def fnt_main(sub_table_offset: int, next_id: int, parent_id: int) -> bytes:
    return struct.pack('<IHH', sub_table_offset, next_id, parent_id)


def _name(name: 'Union[str, bytes]') -> bytes:
    return name.encode('latin-1') if isinstance(name, str) else name


class RomBuilder:
    """
    Assembles a valid image from a nested description.

    A description is a list of (name, bytes) for files and (name, list) for directories. Directory ids are given out
    depth-first. Each directory's files get consecutive ids, directories taken in the same order.
    """

    def __init__(self, root: list, title: bytes = b'TESTROM', code: bytes = b'NTRJ'):
        self.root = root
        self.title = title
        self.code = code
        # path -> id
        self.dir_ids: 'Dict[bytes, int]' = {}
        self.file_ids: 'Dict[bytes, int]' = {}
        # path -> contents
        self.contents: 'Dict[bytes, bytes]' = {}
        # path -> children, in order
        self.listing: 'Dict[bytes, List[bytes]]' = {}

    def build(self) -> bytes:
        dirs = []

        def collect(children, path, parent_id):
            dir_id = ROOT_ID + len(dirs)
            self.dir_ids[path] = dir_id
            dirs.append((path, children, parent_id))
            self.listing[path] = [_name(c[0]) for c in children]
            for name, value in children:
                if isinstance(value, list):
                    collect(value, self._join(path, _name(name)), dir_id)

        collect(self.root, b'/', None)

        next_ids = {}
        file_data = []
        for path, children, _ in dirs:
            next_ids[path] = len(file_data)
            for name, value in children:
                if not isinstance(value, list):
                    file_path = self._join(path, _name(name))
                    self.file_ids[file_path] = len(file_data)
                    self.contents[file_path] = value
                    file_data.append(value)

        sub_tables = []
        for path, children, _ in dirs:
            raw = bytearray()
            for name, value in children:
                name = _name(name)
                if isinstance(value, list):
                    raw.append(0x80 | len(name))
                    raw += name
                    raw += struct.pack('<H', self.dir_ids[self._join(path, name)])
                else:
                    raw.append(len(name))
                    raw += name
            raw.append(0)
            sub_tables.append(bytes(raw))

        main_size = len(dirs) * 8
        main = bytearray()
        offset = main_size
        for (path, _, parent_id), sub in zip(dirs, sub_tables):
            # the root's parent field holds the directory count
            main += fnt_main(offset, next_ids[path], len(dirs) if parent_id is None else parent_id)
            offset += len(sub)
        fnt = bytes(main) + b''.join(sub_tables)

        fat_offset = _align(HEADER_AREA + len(fnt))
        data_offset = _align(fat_offset + len(file_data) * 8, 0x200)
        fat = []
        data = {}
        for chunk in file_data:
            fat.append((data_offset, data_offset + len(chunk)))
            data[data_offset] = chunk
            data_offset = _align(data_offset + len(chunk), 0x200)
        return assemble(fnt, fat, data, size=data_offset, title=self.title, code=self.code)

    @staticmethod
    def _join(path: bytes, name: bytes) -> bytes:
        return path + name if path == b'/' else path + b'/' + name


SAMPLE_TREE = [
    ('readme.txt', b'hello nitro\n'),
    ('data', [
        ('a.bin', bytes(range(256)) * 4),
        ('sub', [
            ('deep.txt', b'deep'),
        ]),
        ('b.bin', b'\xAA' * 5000),
        ('empty', []),
    ]),
    ('sound', [
        ('bgm.sdat', b'SDAT' + bytes(600)),
    ]),
    ('zero.bin', b''),
]


@pytest.fixture
def sample_builder() -> RomBuilder:
    builder = RomBuilder(SAMPLE_TREE, title=b'NITRO TEST', code=b'ANTE')
    builder.image = builder.build()
    return builder


@pytest.fixture
def sample_reader(sample_builder):
    with NitroFSReader(ImageView(sample_builder.image), g_stat={'st_ctime': 1, 'st_mtime': 2, 'st_atime': 3}) as r:
        yield r


@pytest.fixture
def sample_rom_file(tmp_path, sample_builder):
    path = tmp_path / 'sample.nds'
    path.write_bytes(sample_builder.image)
    return path
