# This file is a part of ndsfs.
#
# Copyright (c) 2017-2021 Ian Burgwin
# This file is licensed under The MIT License (MIT).
# You can find the full license text in LICENSE.md in the root of this project.

"""
Mounts Nintendo DS ROM images, creating a read-only virtual filesystem of the NitroFS contents.
"""

import logging
from errno import EROFS
from functools import wraps
from sys import argv, exit

from ..nitro import NAME_ENCODING, ImageError, NitroFSReader, NitroOSError
from . import _common as _c
# _common imports these from fusepy, and prints an error if it fails; this allows less duplicated code
from ._common import FUSE, FuseOSError, Operations, LoggingMixIn, fuse_get_context, get_time, realpath


def _fuse_errors(method):
    @wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except NitroOSError as e:
            raise FuseOSError(e.errno)
    return wrapper


class SRLMount(LoggingMixIn, Operations):
    def __init__(self, reader: 'NitroFSReader'):
        self.reader = reader
        self.title = reader.header.game_title
        self.code = reader.header.game_code

    def __del__(self, *args):
        try:
            self.reader.close()
        except AttributeError:
            pass

    destroy = __del__

    @_fuse_errors
    def getattr(self, path, fh=None):
        uid, gid, pid = fuse_get_context()
        st = self.reader.stat(path)
        return {**st, 'st_uid': uid, 'st_gid': gid}

    @_fuse_errors
    def opendir(self, path):
        return self.reader.opendir(path)

    @_fuse_errors
    def readdir(self, path, fh, offset=0):
        return self.reader.readdir(path, offset)

    @_fuse_errors
    def open(self, path, flags):
        return self.reader.open(path, flags)

    def create(self, path, mode, fi=None):
        raise FuseOSError(EROFS)

    @_fuse_errors
    def read(self, path, size, offset, fh):
        return self.reader.read(fh, size, offset)

    def statfs(self, path):
        return self.reader.statfs()


def main(prog: str = None, args: list = None):
    from argparse import ArgumentParser
    if args is None:
        args = argv[1:]
    parser = ArgumentParser(prog=prog, description='Mount Nintendo DS ROM images.',
                            parents=(_c.default_argp, _c.main_args('srl', 'NDS/SRL file')))

    a = parser.parse_args(args)
    opts = dict(_c.parse_fuse_opts(a.o))

    if a.do:
        logging.basicConfig(level=logging.DEBUG, filename=a.do)

    srl_stat = get_time(a.srl)

    try:
        reader = NitroFSReader.from_file(a.srl, g_stat=srl_stat)
    except ImageError as e:
        exit(f'Failed to load ROM: {e}')

    with reader:
        mount = SRLMount(reader=reader)
        if _c.macos or _c.windows:
            opts['fstypename'] = 'SRL'
            if _c.macos:
                opts['volname'] = f'Nintendo DS ROM ({mount.title})'
            elif _c.windows:
                # volume label can only be up to 32 chars
                opts['volname'] = f'NDS ({mount.code})'
        FUSE(mount, a.mount_point, foreground=a.fg or a.do or a.d, ro=True, debug=a.d,
             encoding=NAME_ENCODING, fsname=realpath(a.srl).replace(',', '_'), **opts)
