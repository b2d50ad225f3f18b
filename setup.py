#! /usr/bin/env python

# This library is free software; you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation; either version 3 of the License, or
# (at your option) any later version.
#
# This library is distributed in the hope that it will be useful, but
# WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the GNU
# General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this library; if not, see <http://www.gnu.org/licenses/>.


"""
Brew Bridge - import PNC builds and their artifacts into Brew/Koji

:license: GPL version 3
"""


VERSION = "0.1.0"


CLASSIFIERS = [
    "Environment :: Console",
    "Intended Audience :: Developers",
    "License :: OSI Approved :: GNU General Public License v3 (GPLv3)",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3.8",
    "Programming Language :: Python :: 3.9",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Topic :: Software Development :: Build Tools",
]


CLI = {
    "brewbridge-build-artifacts": "brewbridge.cli:main_build_artifacts",
    "brewbridge-build-log": "brewbridge.cli:main_build_log",
    "brewbridge-check-tag": "brewbridge.cli:main_check_tag",
    "brewbridge-find-build": "brewbridge.cli:main_find_build",
    "brewbridge-milestone-builds": "brewbridge.cli:main_milestone_builds",
    "brewbridge-milestone-tag": "brewbridge.cli:main_milestone_tag",
}


def config():
    return {
        "name": "brewbridge",
        "version": VERSION,
        "description": "Import PNC builds and artifacts into Brew/Koji",

        "license": "GNU General Public License v3 (GPLv3)",

        "classifiers": CLASSIFIERS,

        "python_requires": ">=3.8",

        "packages": [
            "brewbridge",
        ],

        "install_requires": [
            "appdirs",
            "koji",
            "koji-types",
            "requests",
        ],

        "extras_require": {
            "test": [
                "pytest",
            ],
        },

        "zip_safe": False,

        "entry_points": {
            "console_scripts": ["=".join(c) for c in CLI.items()],
        },
    }


def setup():
    import setuptools
    return setuptools.setup(**config())


if __name__ == "__main__":
    setup()


#
# The end.
