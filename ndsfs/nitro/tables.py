# This file is a part of ndsfs.
#
# Copyright (c) 2017-2021 Ian Burgwin
# This file is licensed under The MIT License (MIT).
# You can find the full license text in LICENSE.md in the root of this project.

from struct import Struct
from typing import TYPE_CHECKING, NamedTuple

from .common import MalformedTableError, OutOfBoundsError

if TYPE_CHECKING:
    from .image import ImageView

__all__ = ['ROOT_ID', 'DIR_MARKER', 'DIR_MASK', 'HEADER_SIZE', 'NitroHeader', 'FNTMainEntry', 'FATEntry',
           'TableDecoder', 'is_dir_id']

ROOT_ID = 0xF000
DIR_MARKER = 0xF000
DIR_MASK = 0x0FFF

# only the parts of the cartridge header needed to find the tables (and name the volume)
HEADER_SIZE = 0x50
header_struct = Struct('<12s 4s 48x I I I I')

fnt_main_struct = Struct('<I H H')
fat_struct = Struct('<I I')


def is_dir_id(entry_id: int) -> bool:
    return entry_id & DIR_MARKER == DIR_MARKER


class NitroHeader(NamedTuple):
    game_title: str
    game_code: str
    fnt_offset: int
    fnt_size: int
    fat_offset: int
    fat_size: int

    @classmethod
    def load(cls, image: 'ImageView') -> 'NitroHeader':
        title, code, fnt_offset, fnt_size, fat_offset, fat_size = header_struct.unpack(image.read(0, HEADER_SIZE))
        return cls(game_title=title.decode('ascii', 'replace').replace('\0', ''),
                   game_code=code.decode('ascii', 'replace').replace('\0', ''),
                   fnt_offset=fnt_offset, fnt_size=fnt_size, fat_offset=fat_offset, fat_size=fat_size)


class FNTMainEntry(NamedTuple):
    sub_table_offset: int
    next_id: int
    parent_id: int


class FATEntry(NamedTuple):
    start_offset: int
    end_offset: int

    @property
    def size(self) -> int:
        return self.end_offset - self.start_offset


class TableDecoder:
    """
    Reads fixed-layout records out of the FNT and FAT.

    Every read goes through the image's bounds check. Record lookups additionally check that the record lies inside
    the table region given by the header, so a bad id is reported as MalformedTableError rather than decoding
    whatever bytes happen to follow the table.
    """

    def __init__(self, image: 'ImageView', header: NitroHeader):
        self.image = image
        self.header = header

    def read_byte(self, offset: int) -> int:
        return self.image.read_u8(offset)

    def read_u16(self, offset: int) -> int:
        return self.image.read_u16(offset)

    def read_u32(self, offset: int) -> int:
        return self.image.read_u32(offset)

    def read_bytes(self, offset: int, size: int) -> bytes:
        return self.image.read(offset, size)

    def sub_table_start(self, entry: FNTMainEntry) -> int:
        return self.header.fnt_offset + entry.sub_table_offset

    def read_fnt_main(self, dir_id: int) -> FNTMainEntry:
        if not is_dir_id(dir_id):
            raise MalformedTableError(f'{dir_id:#06x} is not a directory id')
        row = (dir_id & DIR_MASK) * fnt_main_struct.size
        if row + fnt_main_struct.size > self.header.fnt_size:
            raise MalformedTableError(f'directory id {dir_id:#06x} is outside the FNT main table '
                                      f'(FNT size {self.header.fnt_size:#x})')
        return FNTMainEntry(*fnt_main_struct.unpack(self.image.read(self.header.fnt_offset + row,
                                                                    fnt_main_struct.size)))

    def read_fat(self, file_id: int) -> FATEntry:
        row = file_id * fat_struct.size
        if row + fat_struct.size > self.header.fat_size:
            raise MalformedTableError(f'file id {file_id:#x} is outside the FAT (FAT size {self.header.fat_size:#x})')
        entry = FATEntry(*fat_struct.unpack(self.image.read(self.header.fat_offset + row, fat_struct.size)))
        if entry.end_offset < entry.start_offset:
            raise MalformedTableError(f'file id {file_id:#x} ends before it starts '
                                      f'({entry.start_offset:#x} > {entry.end_offset:#x})')
        if entry.end_offset > self.image.size:
            raise OutOfBoundsError(entry.start_offset, entry.size, self.image.size)
        return entry
