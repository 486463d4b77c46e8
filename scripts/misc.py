# -*- mode: python; coding: utf-8 -*-
# Copyright 2026 the Cigale Project.
# Licensed under the MIT License.

"""
Some miscellaneous operations for shell pipelines around the Flatpak build.
"""

import sys

from cfp_utils import *


def entrypoint(argv):
    if len(argv) < 2:
        die('usage: misc.py {generator-url,sources-path,repo-root}')

    if argv[1] == 'generator-url':
        print(Project.open_default().generator_url())
    elif argv[1] == 'sources-path':
        print(Project.open_default().sources_path())
    elif argv[1] == 'repo-root':
        print(find_repo_root())
    else:
        die(f'unknown misc.py subcommand `{argv[1]}`')

    return 0

if __name__ == '__main__':
    sys.exit(entrypoint(sys.argv))
