# -*- mode: python; coding: utf-8 -*-
# Copyright 2026 the Cigale Project.
# Licensed under the MIT License.

"""
Utilities for the Cigale Flatpak packaging scripts.

Fixed characteristics of the environment:

- The scripts run from somewhere inside a git checkout of Cigale.
- A checkout of the Flathub packaging repository lives next to it, in
  `../flathub` relative to the repository root, unless configured otherwise.
- Optional settings are read from `flatpak/cargo-sources.toml` in the
  repository root.
- The programs `git`, `cargo` and `python3` can be overridden with the
  environment variables $GIT, $CARGO and $PYTHON.

"""

__all__ = '''
CARGO_PROGRAM
GIT_PROGRAM
PYTHON_PROGRAM
Project
SourcesUpdater
die
find_repo_root
note
warn
'''.split()

import hashlib
import os.path
import subprocess
import sys

import requests
import toml


GIT_PROGRAM = os.environ.get('GIT', 'git')
CARGO_PROGRAM = os.environ.get('CARGO', 'cargo')
PYTHON_PROGRAM = os.environ.get('PYTHON', 'python3')

CONFIG_RELPATH = os.path.join('flatpak', 'cargo-sources.toml')

DEFAULT_SETTINGS = {
    'flathub_dir': os.path.join('..', 'flathub'),
    'output_name': 'cargo-sources.json',
    'lockfile': 'Cargo.lock',
    'vendor_dir': '.cargo',
    'vendor_config': 'config',
    'generator_name': 'flatpak-cargo-generator.py',
    'generator_commit': 'd7cfbeaf8d1a2165d917d048511353d6f6e59ab3',
    'generator_url': (
        'https://raw.githubusercontent.com/flatpak/flatpak-builder-tools/'
        '@commit@/cargo/flatpak-cargo-generator.py'
    ),
    'generator_sha256': None,
}

DOWNLOAD_CHUNK_SIZE = 8192
DOWNLOAD_TIMEOUT = 60


def warn(text):
    print('warning:', text, file=sys.stderr)


def die(text):
    raise SystemExit(f'error: {text}')


def note(text):
    print(text, flush=True)


def find_repo_root(cwd=None):
    "Ask git for the top of the current checkout, or die trying."
    try:
        out = subprocess.check_output(
            [GIT_PROGRAM, 'rev-parse', '--show-toplevel'],
            shell = False,
            cwd = cwd,
        )
    except (OSError, subprocess.CalledProcessError) as e:
        die(f'cannot determine the repository root (run this from inside the checkout): {e}')

    root = out.decode('utf8').strip()
    if not root:
        die('`git rev-parse --show-toplevel` printed nothing')

    return root


class Project(object):
    root = None
    cfg = None
    settings = None

    def __init__(self, root, cfg=None):
        self.root = root
        self.cfg = cfg or {}
        self.settings = dict(DEFAULT_SETTINGS)

        section = self.cfg.get('sources', {})

        if not isinstance(section, dict):
            die('the `sources` entry of the configuration must be a table')

        for key, value in section.items():
            if key not in DEFAULT_SETTINGS:
                warn(f'ignoring unknown configuration key `sources.{key}`')
                continue

            if not isinstance(value, str):
                die(f'configuration key `sources.{key}` must be a string, got {value!r}')

            self.settings[key] = value


    @classmethod
    def open_default(cls, config_path=None, cwd=None):
        root = find_repo_root(cwd)

        if config_path is None:
            config_path = os.path.join(root, CONFIG_RELPATH)

            if not os.path.exists(config_path):
                return cls(root)

        try:
            with open(config_path, 'rt') as f:
                cfg = toml.load(f)
        except OSError as e:
            die(f'cannot read configuration file `{config_path}`: {e}')
        except toml.TomlDecodeError as e:
            die(f'cannot parse configuration file `{config_path}`: {e}')

        return cls(root, cfg)


    def path(self, *segments):
        return os.path.join(self.root, *segments)


    def vendor_dir(self):
        return self.path(self.settings['vendor_dir'])


    def vendor_config_path(self):
        return os.path.join(self.vendor_dir(), self.settings['vendor_config'])


    def generator_path(self):
        return self.path(self.settings['generator_name'])


    def generator_url(self):
        url = self.settings['generator_url']
        return url.replace('@commit@', self.settings['generator_commit'])


    def flathub_dir(self):
        # os.path.join discards the root when the setting is absolute
        return os.path.normpath(self.path(self.settings['flathub_dir']))


    def sources_path(self):
        return os.path.join(self.flathub_dir(), self.settings['output_name'])


    def sources_relpath(self):
        "The output path as handed to the generator, relative to the root."
        return os.path.relpath(self.sources_path(), self.root)


class SourcesUpdater(object):
    """
    Regenerate the `cargo-sources.json` file consumed by the Flathub manifest.

    The steps run strictly in order, each one blocking until its external
    program exits. A failing program raises `subprocess.CalledProcessError`
    and nothing after it runs.
    """

    def __init__(self, project, session=None, skip_vendor=False, keep_generator=False):
        self.project = project
        self.session = session
        self.skip_vendor = skip_vendor
        self.keep_generator = keep_generator


    def make_vendor_dir(self):
        os.makedirs(self.project.vendor_dir(), exist_ok=True)


    def vendor_crates(self):
        config_path = self.project.vendor_config_path()
        note(f'Vendoring crates, configuration goes to `{config_path}` ...')

        with open(config_path, 'wb') as config:
            subprocess.check_call(
                [CARGO_PROGRAM, 'vendor'],
                shell = False,
                stdout = config,
                cwd = self.project.root,
            )


    def remove_stale_generator(self):
        p = self.project.generator_path()

        try:
            os.unlink(p)
        except FileNotFoundError:
            warn(f'no previous generator script at `{p}` to remove')


    def fetch_generator(self):
        url = self.project.generator_url()
        dest = self.project.generator_path()
        note(f'Downloading {url} ...')

        session = self.session or requests
        s = hashlib.sha256()
        complete = False

        try:
            with session.get(url, stream=True, timeout=DOWNLOAD_TIMEOUT) as r:
                r.raise_for_status()

                with open(dest, 'wb') as f:
                    for chunk in r.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                        f.write(chunk)
                        s.update(chunk)

            complete = True
        finally:
            if not complete and os.path.exists(dest):
                os.unlink(dest)

        if not self.digest_matches(s.hexdigest()):
            os.unlink(dest)
            die(
                f'downloaded generator has SHA256 {s.hexdigest()} but '
                f'{self.project.settings["generator_sha256"]} was expected; refusing to run it'
            )

        return s.hexdigest()


    def digest_matches(self, hexdigest):
        expected = self.project.settings['generator_sha256']
        return expected is None or hexdigest == expected.lower()


    def check_existing_generator(self):
        p = self.project.generator_path()
        s = hashlib.sha256()

        with open(p, 'rb') as f:
            for chunk in iter(lambda: f.read(DOWNLOAD_CHUNK_SIZE), b''):
                s.update(chunk)

        if not self.digest_matches(s.hexdigest()):
            die(
                f'existing generator `{p}` has SHA256 {s.hexdigest()} but '
                f'{self.project.settings["generator_sha256"]} was expected; '
                'rerun without --keep-generator to download it again'
            )

        return s.hexdigest()


    def generate_sources(self):
        settings = self.project.settings
        note(f'Generating `{self.project.sources_path()}` ...')

        subprocess.check_call(
            [
                PYTHON_PROGRAM,
                settings['generator_name'],
                settings['lockfile'],
                '-o', self.project.sources_relpath(),
            ],
            shell = False,
            cwd = self.project.root,
        )


    def go(self):
        flathub = self.project.flathub_dir()

        if not os.path.isdir(flathub):
            warn(f'expected a checkout of the flathub repository at `{flathub}`')

        if not self.skip_vendor:
            self.make_vendor_dir()
            self.vendor_crates()

        if self.keep_generator and os.path.exists(self.project.generator_path()):
            note(f'Reusing existing `{self.project.generator_path()}`')
            self.check_existing_generator()
        else:
            self.remove_stale_generator()
            self.fetch_generator()

        self.generate_sources()
