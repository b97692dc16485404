# Copyright (C) 2003-2008  Robey Pointer <robeypointer@gmail.com>
#
# This file is part of sshkeyfile.
#
# sshkeyfile is free software; you can redistribute it and/or modify it under
# the terms of the GNU Lesser General Public License as published by the Free
# Software Foundation; either version 2.1 of the License, or (at your option)
# any later version.
#
# sshkeyfile is distributed in the hope that it will be useful, but WITHOUT ANY
# WARRANTY; without even the implied warranty of MERCHANTABILITY or FITNESS FOR
# A PARTICULAR PURPOSE.  See the GNU Lesser General Public License for more
# details.
#
# You should have received a copy of the GNU Lesser General Public License
# along with sshkeyfile; if not, write to the Free Software Foundation, Inc.,
# 51 Franklin Street, Fifth Floor, Boston, MA  02110-1301 USA.

from setuptools import setup

long_description = open("README.rst").read()

# Version info -- read without importing
_locals = {}
with open("sshkeyfile/_version.py") as fp:
    exec(fp.read(), None, _locals)
version = _locals["__version__"]

extras_require = {
    "test": ["pytest>=7", "invoke>=2.0"],
}

setup(
    name="sshkeyfile",
    version=version,
    description="Read and write OpenSSH and PEM private and public key files",
    long_description=long_description,
    packages=["sshkeyfile"],
    license="LGPL",
    platforms="Posix; MacOS X; Windows",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: "
        "GNU Library or Lesser General Public License (LGPL)",
        "Operating System :: OS Independent",
        "Topic :: Security :: Cryptography",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3 :: Only",
    ],
    python_requires=">=3.7",
    install_requires=[
        "bcrypt>=3.2",
        "cryptography>=3.3",
    ],
    extras_require=extras_require,
)
