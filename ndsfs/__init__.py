# This file is a part of ndsfs.
#
# Copyright (c) 2017-2021 Ian Burgwin
# This file is licensed under The MIT License (MIT).
# You can find the full license text in LICENSE.md in the root of this project.

__copyright__ = 'Copyright (c) 2017-2021 Ian Burgwin'
__license__ = 'MIT'
__version__ = '1.0'
