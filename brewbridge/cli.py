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
Brew Bridge - CLI

Stand-alone console_scripts entry points for inspecting what the
gateways see in PNC and Brew.

:license: GPL v3
"""


import sys

from abc import ABCMeta, abstractmethod
from argparse import ArgumentParser, Namespace
from json import dump
from logging import DEBUG, INFO, WARNING, basicConfig
from os.path import basename
from typing import Any, Iterable, List, Optional, TextIO

from . import BridgeError
from .brew import BrewSessionGateway
from .buildsystem import BuildSystemGateway
from .common import BridgeConfig, load_config
from .types import NVR, PNCArtifact


__all__ = (
    "BridgeCommand",
    "BuildArtifactsCmd",
    "BuildLog",
    "CheckTag",
    "FindBuild",
    "MilestoneBuilds",
    "MilestoneTag",

    "pretty_json",
    "printerr",
)


# these mimic the default format for jq output
JSON_PRETTY_OPTIONS = {
    "indent": 2,
    "separators": (",", ": "),
    "sort_keys": True,
}


def pretty_json(
        data: Any,
        output: Optional[TextIO] = None,
        **pretty):
    """
    Presents JSON in a pretty way.

    :param data: value to be printed

    :param output: stream to print to. Default, `sys.stdout`

    :param pretty: additional or overriding options to `json.dump`
    """

    if output is None:
        output = sys.stdout

    if pretty:
        pretty_options = dict(JSON_PRETTY_OPTIONS, **pretty)
    else:
        pretty_options = JSON_PRETTY_OPTIONS

    dump(data, output, **pretty_options)
    print(file=output)


def printerr(*values: Any, sep: str = " ", end: str = "\n",
             flush: bool = False):
    """
    Prints values to stderr
    """

    return print(*values, sep=sep, end=end, file=sys.stderr, flush=flush)


def parse_nvr(value: str) -> NVR:
    """
    Splits an ``N-V-R`` string on its last two dashes

    :raises ValueError: if there aren't enough dashes
    """

    name, version, release = value.rsplit("-", 2)
    if not (name and version and release):
        raise ValueError(f"invalid NVR {value!r}")
    return NVR(name, version, release)


class BridgeCommand(metaclass=ABCMeta):
    """
    Base for the stand-alone commands. Handles argument parsing,
    logging setup, configuration loading, and turning failures into
    exit codes. Subclasses provide `arguments` and `handle`.
    """

    description: str = "A brewbridge command"


    def __init__(self, name: Optional[str] = None):
        self.name = name or basename(sys.argv[0])
        self.config: Optional[BridgeConfig] = None


    @classmethod
    def main(cls, name: Optional[str] = None,
             args: Optional[List[str]] = None) -> int:
        return cls(name)(args)


    def parser(self) -> ArgumentParser:
        argp = ArgumentParser(prog=self.name, description=self.description)
        argp = self.common_arguments(argp) or argp
        return self.arguments(argp) or argp


    def common_arguments(self, parser: ArgumentParser) -> ArgumentParser:
        grp = parser.add_argument_group("Configuration options")
        addarg = grp.add_argument

        addarg("--profile", "-p", action="store", default=None,
               metavar="PROFILE",
               help="use the [brewbridge:PROFILE] configuration")

        addarg("--config", "-c", action="append", default=None,
               dest="config_files", metavar="FILE",
               help="configuration file to load in place of the"
               " default locations. May be given more than once")

        addarg("--debug", action="store_true", default=False,
               help="log debugging information")

        addarg("--quiet", "-q", action="store_true", default=False,
               help="only log warnings and errors")

        return parser


    def arguments(self, parser: ArgumentParser) -> Optional[ArgumentParser]:
        """
        Override to add relevant arguments to the given parser
        """

        pass


    def validate(self, parser: ArgumentParser, options: Namespace) -> None:
        """
        Override to perform validation on options values. Use
        `parser.error` if needed.
        """

        pass


    def setup_logging(self, options: Namespace) -> None:
        if options.debug:
            level = DEBUG
        elif options.quiet:
            level = WARNING
        else:
            level = INFO
        basicConfig(level=level,
                    format="%(asctime)s %(levelname)s %(name)s: %(message)s")


    def load_config(self, options: Namespace) -> BridgeConfig:
        return load_config(options.profile, options.config_files)


    @abstractmethod
    def handle(self, options: Namespace) -> Optional[int]:
        pass


    def __call__(self, args: Optional[List[str]] = None) -> int:

        parser = self.parser()
        options = parser.parse_args(args)

        self.validate(parser, options)

        self.setup_logging(options)

        try:
            self.config = self.load_config(options)
            return self.handle(options) or 0

        except KeyboardInterrupt:
            printerr()
            return 130

        except BridgeError as bad:
            printerr(bad)
            return -2

        finally:
            self.config = None


class PNCCommand(BridgeCommand, metaclass=ABCMeta):

    def gateway(self) -> BuildSystemGateway:
        return BuildSystemGateway(self.config)


class BrewCommand(BridgeCommand, metaclass=ABCMeta):

    def gateway(self) -> BrewSessionGateway:
        return BrewSessionGateway(self.config)


class MilestoneTag(PNCCommand):

    description = "Print the brew tag prefix of a PNC milestone"


    def arguments(self, parser):
        parser.add_argument("milestone", metavar="MILESTONE",
                            help="PNC product milestone ID")
        return parser


    def handle(self, options):
        tag = self.gateway().tag_for_milestone(options.milestone)
        if tag is None:
            printerr(f"Milestone {options.milestone} has no tag prefix")
            return 1
        print(tag)


class MilestoneBuilds(PNCCommand):

    description = "List the successful builds of a PNC milestone"


    def arguments(self, parser):
        addarg = parser.add_argument
        addarg("milestone", metavar="MILESTONE",
               help="PNC product milestone ID")
        addarg("--json", action="store_true", default=False,
               help="Output as JSON")
        return parser


    def handle(self, options):
        gateway = self.gateway()
        builds = gateway.successful_builds_for_milestone(options.milestone)
        builds = sorted(builds, key=lambda b: b.id)

        if options.json:
            pretty_json([b._asdict() for b in builds])
            return

        for build in builds:
            print(build.id, build.build_config_name or "")


def _as_dicts(artifacts: Iterable[PNCArtifact]) -> List[dict]:
    return [a._asdict() for a in sorted(artifacts, key=lambda a: a.id)]


def _print_artifacts(heading: str, artifacts: Iterable[PNCArtifact]):
    print(f"{heading}:")
    for art in sorted(artifacts, key=lambda a: a.identifier):
        print(" ", art.identifier, art.deploy_path)


class BuildArtifactsCmd(PNCCommand):

    description = "List the built and dependency artifacts of a PNC build"


    def arguments(self, parser):
        addarg = parser.add_argument
        addarg("build", metavar="BUILD", help="PNC build ID")
        addarg("--json", action="store_true", default=False,
               help="Output as JSON")
        return parser


    def handle(self, options):
        found = self.gateway().build_artifacts(options.build)

        if options.json:
            pretty_json({
                "built": _as_dicts(found.built),
                "dependencies": _as_dicts(found.dependencies),
            })
            return

        _print_artifacts("Built", found.built)
        _print_artifacts("Dependencies", found.dependencies)


class BuildLog(PNCCommand):

    description = "Print the build log of a PNC build"


    def arguments(self, parser):
        parser.add_argument("build", metavar="BUILD", help="PNC build ID")
        return parser


    def handle(self, options):
        sys.stdout.write(self.gateway().build_log(options.build))


class FindBuild(BrewCommand):

    description = "Find a PNC-imported build in Brew by NVR or ID"


    def arguments(self, parser):
        addarg = parser.add_argument
        addarg("build", metavar="NVR_OR_ID", help="Brew build NVR or ID")
        addarg("--json", action="store_true", default=False,
               help="Output as JSON")
        return parser


    def validate(self, parser: ArgumentParser, options: Namespace):
        if not options.build.isdigit():
            try:
                parse_nvr(options.build)
            except ValueError:
                parser.error(f"invalid build NVR or ID: {options.build}")


    def handle(self, options):
        gateway = self.gateway()

        if options.build.isdigit():
            build = gateway.find_build(int(options.build))
        else:
            build = gateway.find_build_by_nvr(parse_nvr(options.build))

        if build is None:
            printerr(f"No such build: {options.build}")
            return 1

        url = gateway.build_url(build.id)

        if options.json:
            pretty_json({"id": build.id, "nvr": build.nvr, "url": url})
        else:
            print(f"{build.nvr} [{build.id}] {url}")


class CheckTag(BrewCommand):

    description = "Check a Brew tag and its candidate tag exist"


    def arguments(self, parser):
        addarg = parser.add_argument
        addarg("tag", metavar="TAG", help="Brew tag name")
        addarg("--build", action="store", default=None, metavar="NVR",
               help="Also check whether the build is tagged")
        return parser


    def validate(self, parser, options):
        if options.build:
            try:
                parse_nvr(options.build)
            except ValueError:
                parser.error(f"invalid build NVR: {options.build}")


    def handle(self, options):
        gateway = self.gateway()
        tag = options.tag

        if not gateway.tags_exist(tag):
            print(f"Tag {tag} or its candidate tag is missing")
            return 1

        print(f"Tag {tag} and its candidate tag exist")

        if options.build:
            build = gateway.find_build_by_nvr(parse_nvr(options.build))
            if build is None or not gateway.is_build_tagged(tag, build):
                print(f"Build {options.build} is not tagged")
                return 1
            print(f"Build {options.build} is tagged")


def main_milestone_tag():
    return MilestoneTag.main()


def main_milestone_builds():
    return MilestoneBuilds.main()


def main_build_artifacts():
    return BuildArtifactsCmd.main()


def main_build_log():
    return BuildLog.main()


def main_find_build():
    return FindBuild.main()


def main_check_tag():
    return CheckTag.main()


#
# The end.
