# -*- mode: python; coding: utf-8 -*-
# Copyright 2026 the Cigale Project.
# Licensed under the MIT License.

"""
Shared fixtures. External programs and the network are never touched: every
call to `subprocess` and every HTTP request is recorded by a fake instead.
"""

import importlib.util
import os.path
import subprocess

import pytest
import requests

import cfp_utils

SCRIPTS_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), 'scripts')

GENERATOR_BODY = b'#! /usr/bin/env python3\nprint("generator")\n'


def load_script(name):
    "Import one of the (possibly hyphenated) scripts as a module."
    path = os.path.join(SCRIPTS_DIR, name)
    spec = importlib.util.spec_from_file_location(name[:-3].replace('-', '_'), path)
    mod = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(mod)
    return mod


class FakeResponse(object):
    def __init__(self, url, body, status_code=200):
        self.url = url
        self.body = body
        self.status_code = status_code

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f'{self.status_code} for url: {self.url}', response=self)

    def iter_content(self, chunk_size=1):
        for i in range(0, len(self.body), chunk_size):
            yield self.body[i:i + chunk_size]


class FakeSession(object):
    def __init__(self, calls, body=GENERATOR_BODY, status_code=200):
        self.calls = calls
        self.body = body
        self.status_code = status_code

    def get(self, url, **kwargs):
        self.calls.append(('get', url, kwargs))
        return FakeResponse(url, self.body, self.status_code)


@pytest.fixture
def checkout(tmp_path):
    "A fake Cigale checkout with a sibling flathub directory."
    root = tmp_path / 'cigale'
    root.mkdir()
    (root / 'Cargo.lock').write_text('# lockfile\n')
    (tmp_path / 'flathub').mkdir()
    return root


@pytest.fixture
def calls():
    return []


@pytest.fixture
def fake_git(monkeypatch, checkout, calls):
    def check_output(args, **kwargs):
        calls.append(('check_output', args, kwargs))
        return (str(checkout) + '\n').encode('utf8')

    monkeypatch.setattr(subprocess, 'check_output', check_output)
    return check_output


@pytest.fixture
def fake_no_git(monkeypatch, calls):
    def check_output(args, **kwargs):
        calls.append(('check_output', args, kwargs))
        raise subprocess.CalledProcessError(128, args)

    monkeypatch.setattr(subprocess, 'check_output', check_output)
    return check_output


@pytest.fixture
def fake_programs(monkeypatch, calls):
    def check_call(args, **kwargs):
        calls.append(('check_call', args, kwargs))

        if args[:2] == [cfp_utils.CARGO_PROGRAM, 'vendor']:
            kwargs['stdout'].write(b'[source.crates-io]\nreplace-with = "vendored-sources"\n')

        return 0

    monkeypatch.setattr(subprocess, 'check_call', check_call)
    return check_call


@pytest.fixture
def session(monkeypatch, calls):
    s = FakeSession(calls)
    monkeypatch.setattr(requests, 'get', s.get)
    return s
