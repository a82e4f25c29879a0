# This file is a part of ndsfs.
#
# Copyright (c) 2017-2021 Ian Burgwin
# This file is licensed under The MIT License (MIT).
# You can find the full license text in LICENSE.md in the root of this project.

"""Reader for the NitroFS filesystem inside Nintendo DS ROM images."""

from .common import *
from .image import *
from .reader import *
from .tables import *
from .tree import *
