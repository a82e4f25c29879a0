# This file is a part of ndsfs.
#
# Copyright (c) 2017-2021 Ian Burgwin
# This file is licensed under The MIT License (MIT).
# You can find the full license text in LICENSE.md in the root of this project.

from os.path import basename
from sys import exit, argv, hexversion, version_info

if hexversion < 0x030601F0:
    exit('Python {0[0]}.{0[1]}.{0[2]} is not supported. Please use Python 3.6.1 or later.'.format(version_info))


def print_version():
    from . import __version__
    pyver = '{0[0]}.{0[1]}.{0[2]}'.format(version_info)
    if version_info[3] != 'final':
        pyver += '{0[3][0]}{0[4]}'.format(version_info)
    print('ndsfs v{0} on Python {1}'.format(__version__, pyver))


def mount(prog: str = None, args: list = None) -> int:
    if args is None:
        args = argv[1:]

    if args and args[0] in {'-v', '--version'}:
        print_version()
        return 0

    from .mount import srl
    try:
        srl.main(prog=prog, args=args)
    except RuntimeError as e:
        if e.args == (1,):
            # fusepy raises this when mounting fails; libfuse has already printed the reason
            return 1
        raise
    return 0


def main():
    prog = basename(argv[0])
    exit(mount(prog=None if prog.endswith('.py') else prog))
