"""
Pytest configuration and shared fixtures for fsmparse tests
"""

import pytest
from typing import Dict

from fsmparse import CompiledTemplateCache, FsmEngine


@pytest.fixture
def engine() -> FsmEngine:
    """Engine with its own cache, so tests never share compiled templates"""
    return FsmEngine(cache=CompiledTemplateCache())


@pytest.fixture
def hostname_template() -> Dict:
    return {
        'id': 'hostnames',
        'name': 'Hostnames',
        'vendor': 'generic',
        'command': 'show hosts',
        'states': [
            {
                'name': 'start',
                'patterns': [
                    {'regex': r'^Hostname:\s+(?<host>\S+)$', 'actions': [{'type': 'emit'}]},
                ],
            },
        ],
    }


@pytest.fixture
def interfaces_template() -> Dict:
    """start -> interfaces on the header line, end on the pager prompt"""
    return {
        'id': 'interfaces',
        'name': 'Interface status',
        'vendor': 'cisco',
        'command': 'show interfaces status',
        'states': [
            {
                'name': 'start',
                'patterns': [
                    {'regex': r'^Interface status', 'actions': [], 'transition': {'to': 'interfaces'}},
                ],
            },
            {
                'name': 'interfaces',
                'patterns': [
                    {'regex': r'show more', 'actions': [], 'transition': {'to': 'end'}},
                    {
                        'regex': r'^(?<name>\S+)\s+(?<status>up|down)$',
                        'actions': [{'type': 'emit'}],
                        'transition': {'to': 'self'},
                    },
                ],
            },
        ],
    }


@pytest.fixture
def interfaces_output() -> str:
    return (
        "router1# show interfaces status\n"
        "Interface status\n"
        "Gi0/1 up\n"
        "Gi0/2 down\n"
        "-- show more --\n"
        "Gi0/3 up\n"
    )
