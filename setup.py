#!/usr/bin/env python3

import sys

from setuptools import setup, find_packages

if sys.hexversion < 0x030601f0:
    sys.exit('Python 3.6.1+ is required.')

with open('README.md', 'r', encoding='utf-8') as f:
    readme = f.read()

# based on https://github.com/Legrandin/pycryptodome/blob/b3a394d0837ff92919d35d01de9952b8809e802d/setup.py
with open('ndsfs/__init__.py', 'r', encoding='utf-8') as f:
    for line in f:
        if line.startswith('__version__'):
            version = eval(line.split('=')[1])

setup(
    name='ndsfs',
    version=version,
    packages=find_packages(exclude=('tests',)),
    license='MIT',
    author='Ian Burgwin',
    author_email='ian@ianburgwin.net',
    description='FUSE filesystem for the NitroFS contents of Nintendo DS ROM images',
    long_description=readme,
    long_description_content_type='text/markdown',
    classifiers=[
        'Topic :: Utilities',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
    ],
    install_requires=['fusepy>=3.0.1'],
    extras_require={'test': ['pytest']},
    python_requires='>=3.6.1',
    entry_points={'console_scripts': ['ndsfs = ndsfs.main:main',
                                      'mount_nds = ndsfs.main:main',
                                      'mount_srl = ndsfs.main:main']}
)
