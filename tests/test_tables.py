import struct

import pytest

from ndsfs.nitro import (FATEntry, FNTMainEntry, ImageView, MalformedTableError, NitroHeader, OutOfBoundsError,
                         TableDecoder, is_dir_id)

from .conftest import ROOT_ID, assemble, fnt_main


def decoder_for(image: bytes) -> TableDecoder:
    view = ImageView(image)
    return TableDecoder(view, NitroHeader.load(view))


def test_header_fields():
    fnt = fnt_main(8, 0, 1) + b'\0'
    header = NitroHeader.load(ImageView(assemble(fnt, [(0x300, 0x310)], title=b'POKEMON D', code=b'ADAE')))
    assert header.game_title == 'POKEMON D'
    assert header.game_code == 'ADAE'
    assert header.fnt_offset == 0x200
    assert header.fnt_size == len(fnt)
    assert header.fat_offset == 0x20C
    assert header.fat_size == 8


def test_read_fnt_main_rows():
    fnt = fnt_main(16, 3, 2) + fnt_main(17, 7, ROOT_ID) + b'\0\0'
    dec = decoder_for(assemble(fnt))
    assert dec.read_fnt_main(ROOT_ID) == FNTMainEntry(sub_table_offset=16, next_id=3, parent_id=2)
    assert dec.read_fnt_main(ROOT_ID + 1) == FNTMainEntry(sub_table_offset=17, next_id=7, parent_id=ROOT_ID)
    assert dec.sub_table_start(dec.read_fnt_main(ROOT_ID + 1)) == 0x200 + 17


def test_read_fnt_main_rejects_ids_without_marker():
    dec = decoder_for(assemble(fnt_main(8, 0, 1) + b'\0'))
    with pytest.raises(MalformedTableError):
        dec.read_fnt_main(0x0001)
    with pytest.raises(MalformedTableError):
        dec.read_fnt_main(0x7000)


def test_read_fnt_main_rejects_rows_past_table():
    dec = decoder_for(assemble(fnt_main(8, 0, 1) + b'\0'))
    with pytest.raises(MalformedTableError):
        dec.read_fnt_main(ROOT_ID + 1)


def test_read_fnt_main_with_table_past_image():
    image = assemble(fnt_main(8, 0, 1) + b'\0')
    # header claims the FNT starts beyond the end
    image = image[:0x40] + struct.pack('<I', 0x10000) + image[0x44:]
    with pytest.raises(OutOfBoundsError):
        decoder_for(image).read_fnt_main(ROOT_ID)


def test_read_fat():
    dec = decoder_for(assemble(fnt_main(8, 0, 1) + b'\0', [(0x300, 0x310), (0x310, 0x310)]))
    entry = dec.read_fat(0)
    assert entry == FATEntry(0x300, 0x310)
    assert entry.size == 0x10
    assert dec.read_fat(1).size == 0


def test_read_fat_errors():
    dec = decoder_for(assemble(fnt_main(8, 0, 1) + b'\0', [(0x310, 0x300)]))
    with pytest.raises(MalformedTableError):
        dec.read_fat(0)
    with pytest.raises(MalformedTableError):
        dec.read_fat(1)


def test_is_dir_id():
    assert is_dir_id(ROOT_ID)
    assert is_dir_id(0xF123)
    assert not is_dir_id(0x0123)
    assert not is_dir_id(0xE000)
