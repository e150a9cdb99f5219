"""
Unit tests for the FSM execution engine
"""

import pytest

from fsmparse import EngineOptions, FsmEngine, InvalidPatternError, parse, split_lines
from fsmparse.tests.helpers import single_state


class TestSplitLines:
    def test_trailing_terminator_dropped(self):
        assert split_lines("a\n") == ["a"]

    def test_only_one_trailing_segment_dropped(self):
        assert split_lines("a\n\n") == ["a", ""]

    def test_empty_text_has_no_lines(self):
        assert split_lines("") == []

    def test_crlf_and_lf(self):
        assert split_lines("a\r\nb\nc") == ["a", "b", "c"]


class TestScenarios:
    def test_hostname_records(self, engine, hostname_template):
        result = engine.parse("Hostname: router1\nHostname: router2", hostname_template)

        assert result.records == [{'host': 'router1'}, {'host': 'router2'}]
        assert result.meta.lines_processed == 2
        assert result.meta.matches == 2
        assert result.meta.errors is None
        assert result.to_dict() == {
            'templateId': 'hostnames',
            'templateName': 'Hostnames',
            'records': [{'host': 'router1'}, {'host': 'router2'}],
            'meta': {'linesProcessed': 2, 'matches': 2},
        }

    def test_crlf_input(self, engine, hostname_template):
        result = engine.parse("Hostname: router1\r\nHostname: router2\r\n", hostname_template)
        assert [r['host'] for r in result.records] == ['router1', 'router2']
        assert result.meta.lines_processed == 2

    def test_state_transitions_and_end(self, engine, interfaces_template, interfaces_output):
        result = engine.parse(interfaces_output, interfaces_template, EngineOptions(debug=True))

        assert result.records == [
            {'name': 'Gi0/1', 'status': 'up'},
            {'name': 'Gi0/2', 'status': 'down'},
        ]
        # Header matched in start, the next line is evaluated in interfaces
        assert result.trace[1].state == 'start'
        assert result.trace[1].matched is True
        assert result.trace[2].state == 'interfaces'
        # Stopped on the pager line, Gi0/3 never evaluated
        assert len(result.trace) == 5
        assert result.meta.lines_processed == 6
        assert result.meta.matches == 4

    def test_unknown_transition_target(self, engine):
        template = single_state({
            'regex': r'^(?<host>\S+)$',
            'actions': [{'type': 'emit'}],
            'transition': {'to': 'nope'},
        })

        result = engine.parse("r1\nr2\nr3", template)

        assert result.records == [{'host': 'r1'}]
        assert result.meta.errors == ['UnknownStateError: Unknown state: nope']
        assert result.meta.lines_processed == 2
        assert result.to_dict()['meta']['errors'] == ['UnknownStateError: Unknown state: nope']


class TestMatching:
    def test_first_match_wins(self, engine):
        template = single_state(
            {'regex': r'^(?<a>foo)', 'actions': [{'type': 'set', 'variable': 'x', 'value': 'p1'},
                                                  {'type': 'emit'}]},
            {'regex': r'foo', 'actions': [{'type': 'set', 'variable': 'x', 'value': 'p2'},
                                          {'type': 'emit'}]},
        )

        result = engine.parse("foo", template)

        assert result.records == [{'a': 'foo', 'x': 'p1'}]
        assert result.meta.matches == 1

    def test_search_is_not_anchored(self, engine):
        template = single_state({'regex': r'(?<speed>\d+)Mb/s', 'actions': [{'type': 'emit'}]})
        result = engine.parse("  BW 1000Mb/s, DLY 10 usec", template)
        assert result.records == [{'speed': '1000'}]

    def test_non_matching_lines_are_not_errors(self, engine, hostname_template):
        result = engine.parse("garbage\nHostname: r1\n\nmore garbage", hostname_template)
        assert result.records == [{'host': 'r1'}]
        assert result.meta.lines_processed == 4
        assert result.meta.matches == 1
        assert result.meta.errors is None

    def test_map_renames_groups(self, engine):
        template = single_state({
            'regex': r'^Hostname:\s+(?<host>\S+)$',
            'map': {'host': 'hostname'},
            'actions': [{'type': 'emit'}],
        })
        assert engine.parse("Hostname: r1", template).records == [{'hostname': 'r1'}]

    def test_python_named_group_syntax(self, engine):
        template = single_state({'regex': r'^Hostname:\s+(?P<host>\S+)$', 'actions': [{'type': 'emit'}]})
        assert engine.parse("Hostname: r1", template).records == [{'host': 'r1'}]

    def test_non_participating_group_binds_none(self, engine):
        template = single_state({'regex': r'^(?<a>x)?(?<b>y)', 'actions': [{'type': 'emit'}]})
        assert engine.parse("y", template).records == [{'a': None, 'b': 'y'}]

    def test_flags(self, engine):
        template = single_state({'regex': r'^hostname:\s+(?<host>\S+)$', 'flags': 'i',
                                 'actions': [{'type': 'emit'}]})
        assert engine.parse("HOSTNAME: r1", template).records == [{'host': 'r1'}]


class TestActions:
    def test_set_from_group_and_literal(self, engine):
        template = single_state({
            'regex': r'^(?<host>\S+) is (?<state>\w+)$',
            'actions': [
                {'type': 'set', 'variable': 'device', 'fromGroup': 'host'},
                {'type': 'set', 'variable': 'source', 'value': 'cli'},
                {'type': 'emit'},
            ],
        })
        result = engine.parse("r1 is up", template)
        assert result.records == [{'host': 'r1', 'state': 'up', 'device': 'r1', 'source': 'cli'}]

    def test_clear_removes_variable(self, engine):
        template = single_state(
            {'regex': r'^Device: (?<device>\S+)', 'actions': []},
            {'regex': r'^reset', 'actions': [{'type': 'clear', 'variable': 'device'}]},
            {'regex': r'^Port (?<port>\S+)', 'actions': [{'type': 'emit'}]},
        )
        result = engine.parse("Device: sw1\nPort 1\nreset\nPort 2", template)
        assert result.records == [{'device': 'sw1', 'port': '1'}, {'port': '2'}]
        assert 'device' not in result.records[1]

    def test_filldown_persists_across_lines(self, engine):
        template = single_state(
            {'regex': r'^Device: (?<device>\S+)', 'actions': []},
            {'regex': r'^Port (?<port>\S+)', 'actions': [{'type': 'emit'}]},
        )
        result = engine.parse("Device: sw1\nPort 1\nnoise\nPort 2", template)
        assert result.records == [{'device': 'sw1', 'port': '1'}, {'device': 'sw1', 'port': '2'}]

    def test_reset_on_emit_isolates_records(self, engine):
        template = single_state(
            {'regex': r'^Device: (?<device>\S+)', 'actions': []},
            {'regex': r'^Port (?<port>\S+)', 'actions': [{'type': 'emit'}]},
        )
        result = engine.parse("Device: sw1\nPort 1\nPort 2", template, {'resetOnEmit': True})
        assert result.records == [{'device': 'sw1', 'port': '1'}, {'port': '2'}]

    def test_append_builds_list(self, engine):
        template = single_state(
            {'regex': r'^item (?<v>\S+)', 'actions': [{'type': 'append', 'variable': 'items', 'fromGroup': 'v'}]},
            {'regex': r'^done', 'actions': [{'type': 'emit'}]},
        )
        result = engine.parse("item a\nitem b\nitem c\ndone", template)
        assert result.records[0]['items'] == ['a', 'b', 'c']

    def test_append_upgrades_scalar(self, engine):
        template = single_state(
            {'regex': r'^first (?<items>\S+)', 'actions': []},
            {'regex': r'^item (?<v>\S+)', 'actions': [{'type': 'append', 'variable': 'items', 'fromGroup': 'v'}]},
            {'regex': r'^done', 'actions': [{'type': 'emit'}]},
        )
        result = engine.parse("first v0\nitem v1\ndone", template)
        assert result.records[0]['items'] == ['v0', 'v1']

    def test_emitted_lists_do_not_change_later(self, engine):
        template = single_state(
            {'regex': r'^item (?<v>\S+)', 'actions': [{'type': 'append', 'variable': 'items', 'fromGroup': 'v'},
                                                      {'type': 'emit'}]},
        )
        result = engine.parse("item a\nitem b", template)
        assert result.records[0]['items'] == ['a']
        assert result.records[1]['items'] == ['a', 'b']

    def test_transition_when_always(self, engine):
        template = {
            'id': 'always', 'name': 'Always', 'vendor': 'generic',
            'states': [
                {'name': 'start', 'patterns': [
                    {'regex': r'^begin', 'actions': [], 'transition': {'to': 'body', 'when': 'always'}},
                ]},
                {'name': 'body', 'patterns': [
                    {'regex': r'^(?<v>\d+)$', 'actions': [{'type': 'emit'}]},
                ]},
            ],
        }
        assert engine.parse("1\nbegin\n2", template).records == [{'v': '2'}]


class TestCoercion:
    def test_disabled_by_default(self, engine):
        template = single_state({'regex': r'^count (?<count>\S+)', 'actions': [{'type': 'emit'}]},
                                variables=[{'name': 'count', 'type': 'number'}])
        assert engine.parse("count 42", template).records == [{'count': '42'}]

    def test_group_binding_and_set_are_coerced(self, engine):
        template = single_state(
            {'regex': r'^count (?<count>\S+)', 'actions': [
                {'type': 'set', 'variable': 'vlans', 'fromGroup': 'count'},
                {'type': 'emit'},
            ]},
            {'regex': r'^vlans (?<vlans>.+)$', 'actions': [{'type': 'emit'}]},
            variables=[{'name': 'count', 'type': 'number'}, {'name': 'vlans', 'type': 'list'}],
        )
        result = engine.parse("count 42\ncount abc\nvlans 10, 20,,30", template, EngineOptions(coerce_types=True))

        assert result.records[0]['count'] == 42
        assert result.records[0]['vlans'] == ['42']
        assert result.records[1]['count'] == 'abc'
        assert result.records[2]['vlans'] == ['10', '20', '30']

    def test_append_to_list_variable_does_not_nest(self, engine):
        template = single_state(
            {'regex': r'^vlans (?<v>.+)$', 'actions': [{'type': 'append', 'variable': 'vlans', 'fromGroup': 'v'}]},
            {'regex': r'^done', 'actions': [{'type': 'emit'}]},
            variables=[{'name': 'vlans', 'type': 'list'}],
        )
        result = engine.parse("vlans 10,20\nvlans 30\ndone", template, {'coerceTypes': True})
        assert result.records[0]['vlans'] == ['10', '20', '30']

    def test_append_literal_list_without_coercion_is_one_element(self, engine):
        template = single_state(
            {'regex': r'^go', 'actions': [{'type': 'append', 'variable': 'v', 'value': ['a', 'b']},
                                          {'type': 'emit'}]},
            variables=[{'name': 'v', 'type': 'list'}],
        )
        assert engine.parse("go", template).records == [{'v': [['a', 'b']]}]
        assert engine.parse("go", template, {'coerceTypes': True}).records == [{'v': ['a', 'b']}]


class TestEngine:
    def test_deterministic(self, engine, interfaces_template, interfaces_output):
        first = engine.parse(interfaces_output, interfaces_template, {'debug': True}).to_dict()
        second = FsmEngine().parse(interfaces_output, interfaces_template, {'debug': True}).to_dict()
        assert first == second

    def test_trace_only_with_debug(self, engine, hostname_template):
        assert engine.parse("Hostname: r1", hostname_template).trace is None

        trace = engine.parse("x\nHostname: r1", hostname_template, {'debug': True}).trace
        assert [t.to_dict() for t in trace] == [
            {'lineNumber': 1, 'line': 'x', 'state': 'start', 'matched': False, 'matchedPatternIndex': None},
            {'lineNumber': 2, 'line': 'Hostname: r1', 'state': 'start', 'matched': True,
             'matchedPatternIndex': 0},
        ]

    def test_compiled_template_is_cached(self, engine, hostname_template):
        compiled = engine.compile(hostname_template)
        engine.parse("Hostname: r1", hostname_template)
        assert engine.compile(hostname_template) is compiled
        assert 'hostnames' in engine.cache

    def test_invalidate(self, engine, hostname_template):
        compiled = engine.compile(hostname_template)
        assert engine.invalidate('hostnames') is True
        assert engine.compile(hostname_template) is not compiled

    def test_invalid_pattern_not_cached(self, engine):
        template = single_state({'regex': r'([', 'actions': []}, template_id='broken')
        with pytest.raises(InvalidPatternError):
            engine.parse("anything", template)
        assert 'broken' not in engine.cache

    def test_empty_input(self, engine, hostname_template):
        result = engine.parse("", hostname_template)
        assert result.records == []
        assert result.meta.lines_processed == 0

    def test_module_level_parse(self, hostname_template):
        assert parse("Hostname: r9", hostname_template).records == [{'host': 'r9'}]
