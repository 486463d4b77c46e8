#! /usr/bin/env python3
# -*- mode: python; coding: utf-8 -*-
# Copyright 2026 the Cigale Project.
# Licensed under the MIT License.

"""
Regenerate the vendored crate sources used by the Flatpak build.

Run this from anywhere inside the Cigale checkout. It needs a checkout of the
Flathub packaging repository in `../flathub` next to it, where the resulting
`cargo-sources.json` is written.
"""

import argparse
import os.path
import sys

from cfp_utils import *


def make_arg_parser():
    p = argparse.ArgumentParser(
        description = __doc__,
    )
    p.add_argument(
        '--config',
        help = 'Read settings from this TOML file instead of flatpak/cargo-sources.toml',
    )
    p.add_argument(
        '--flathub-dir',
        help = 'The checkout of the Flathub repository (default: ../flathub)',
    )
    p.add_argument(
        '--skip-vendor',
        action = 'store_true',
        help = 'Do not rerun `cargo vendor`',
    )
    p.add_argument(
        '--keep-generator',
        action = 'store_true',
        help = 'Reuse an already downloaded generator script',
    )
    return p


def entrypoint(argv):
    settings = make_arg_parser().parse_args(argv[1:])
    project = Project.open_default(config_path=settings.config)

    if settings.flathub_dir:
        # relative to where we were run from, not the repository root
        project.settings['flathub_dir'] = os.path.abspath(settings.flathub_dir)

    updater = SourcesUpdater(
        project,
        skip_vendor = settings.skip_vendor,
        keep_generator = settings.keep_generator,
    )
    updater.go()
    note(f'Wrote `{project.sources_path()}`')
    return 0


if __name__ == '__main__':
    sys.exit(entrypoint(sys.argv))
