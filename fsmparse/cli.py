#!/usr/bin/env python3
"""
CLI Entry Point

Command-line interface for parsing CLI output with fsmparse templates.
Includes template validation, TextFSM import, template auto-match and
built-in examples.
"""

import json
import time
from pathlib import Path
from typing import Dict, List

import click

from .engine import FsmEngine
from .errors import FsmParseError
from .logs import configure_logging
from .matcher import find_best_template
from .models import EngineOptions, Template
from .textfsm_import import filldown_values, from_textfsm
from .validator import validate_template


def load_template_doc(path: str) -> Dict:
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def collect_template_files(paths: List[str]) -> List[Path]:
    """Expand directories into the *.json files they contain."""
    files = []
    for p in paths:
        path = Path(p)
        if path.is_dir():
            files.extend(sorted(path.glob('*.json')))
        else:
            files.append(path)
    return files


def print_records(records: List[Dict]):
    """Print records as a simple aligned table."""
    if not records:
        click.echo("No records parsed")
        return

    headers = []
    for record in records:
        for key in record:
            if key not in headers:
                headers.append(key)

    def cell(value):
        if value is None:
            return ''
        if isinstance(value, list):
            return ', '.join(str(v) for v in value)
        return str(value)

    widths = {h: max(len(h), *(len(cell(r.get(h))) for r in records)) for h in headers}
    click.echo('  '.join(h.ljust(widths[h]) for h in headers))
    click.echo('  '.join('-' * widths[h] for h in headers))
    for record in records:
        click.echo('  '.join(cell(record.get(h)).ljust(widths[h]) for h in headers))


# =============================================================================
# COMMANDS
# =============================================================================

@click.group()
@click.option('--log-level', default='warning', show_default=True,
              type=click.Choice(['debug', 'info', 'warning', 'error'], case_sensitive=False),
              help='Log level for library diagnostics (written to stderr)')
@click.option('--log-format', default='text', show_default=True,
              type=click.Choice(['text', 'json']), help='Log output format')
@click.version_option(package_name='fsmparse')
def cli(log_level, log_format):
    """Template-driven FSM parser for network device CLI output."""
    configure_logging(level=log_level, format_type=log_format)


@cli.command()
@click.argument('template', type=click.Path(exists=True, dir_okay=False))
@click.option('--input', '-i', 'input_file', type=click.File('r'), default='-',
              help='Input file (default: stdin)')
@click.option('--debug', is_flag=True, help='Include a per-line trace in the result')
@click.option('--reset-on-emit', is_flag=True, help='Clear variables after every emit')
@click.option('--coerce-types', is_flag=True, help='Coerce values using the template variable types')
@click.option('--no-validate', is_flag=True, help='Skip template validation')
@click.option('--json', '-j', 'output_json', is_flag=True, help='Output results as JSON')
def parse(template, input_file, debug, reset_on_emit, coerce_types, no_validate, output_json):
    """
    Parse CLI output with a template JSON document.

    Examples:

        cat show_version.txt | fsmparse parse templates/cisco_show_version.json

        fsmparse parse templates/arp.json -i arp.txt --json --coerce-types
    """
    doc = load_template_doc(template)

    if not no_validate:
        validation = validate_template(doc)
        if not validation.valid:
            click.echo(click.style(f"Invalid template: {template}", fg='red'), err=True)
            for error in validation.errors:
                click.echo(f"  {error}", err=True)
            raise SystemExit(1)

    options = EngineOptions(debug=debug, reset_on_emit=reset_on_emit, coerce_types=coerce_types)
    try:
        result = FsmEngine().parse(input_file.read(), Template.from_dict(doc), options)
    except FsmParseError as e:
        click.echo(click.style(f"Error: {e}", fg='red'), err=True)
        raise SystemExit(1)

    if output_json:
        click.echo(json.dumps(result.to_dict(), indent=2, default=str))
        return

    print_records(result.records)
    click.echo()
    click.echo(f"Lines processed: {result.meta.lines_processed}")
    click.echo(f"Matches: {result.meta.matches}")
    for error in result.meta.errors or []:
        click.echo(click.style(f"Error: {error}", fg='yellow'))

    if result.trace:
        click.echo("\nTrace:")
        for entry in result.trace:
            marker = f"#{entry.matched_pattern_index}" if entry.matched else '-'
            click.echo(f"  {entry.line_number:>4} [{entry.state}] {marker:>4}  {entry.line}")


@cli.command()
@click.argument('templates', nargs=-1, required=True, type=click.Path(exists=True))
def validate(templates):
    """Validate one or more template JSON documents (or directories of them)."""
    failed = 0
    for path in collect_template_files(list(templates)):
        try:
            result = validate_template(load_template_doc(str(path)))
        except json.JSONDecodeError as e:
            failed += 1
            click.echo(f"{click.style('✗', fg='red')} {path}: invalid JSON: {e}")
            continue

        if result.valid:
            click.echo(f"{click.style('✓', fg='green')} {path}")
        else:
            failed += 1
            click.echo(f"{click.style('✗', fg='red')} {path}")
            for error in result.errors:
                click.echo(f"    {error}")

    if failed:
        raise SystemExit(1)


@cli.command()
@click.argument('textfsm_file', type=click.File('r'))
@click.option('--id', 'template_id', help='Template id (default: file name without extension)')
@click.option('--name', help='Template name (default: the id)')
@click.option('--vendor', default='generic', show_default=True, help='Vendor name')
@click.option('--command', 'cli_command', help='CLI command the template parses')
@click.option('--output', '-o', type=click.File('w'), default='-', help='Output file (default: stdout)')
def convert(textfsm_file, template_id, name, vendor, cli_command, output):
    """Convert a TextFSM template into a template JSON document."""
    if not template_id:
        template_id = Path(textfsm_file.name).stem if textfsm_file.name != '<stdin>' else 'textfsm_template'

    try:
        template = from_textfsm(textfsm_file.read(), template_id, name=name, vendor=vendor, command=cli_command)
    except FsmParseError as e:
        click.echo(click.style(f"Error: {e}", fg='red'), err=True)
        raise SystemExit(1)

    output.write(json.dumps(template.to_dict(), indent=2))
    output.write('\n')


@cli.command()
@click.argument('templates', nargs=-1, required=True, type=click.Path(exists=True))
@click.option('--input', '-i', 'input_file', type=click.File('r'), default='-',
              help='Input file (default: stdin)')
@click.option('--filter', '-f', 'command_filter', help='Only try templates whose command matches (e.g. "show_version")')
@click.option('--top', '-t', type=int, default=5, show_default=True, help='Show top N matches')
@click.option('--json', '-j', 'output_json', is_flag=True, help='Output results as JSON')
@click.option('--verbose', '-v', is_flag=True, help='Show parsed records')
def match(templates, input_file, command_filter, top, output_json, verbose):
    """
    Find the best template for unknown CLI output.

    TEMPLATES: template JSON files or directories of them.
    """
    docs = []
    for path in collect_template_files(list(templates)):
        doc = load_template_doc(str(path))
        if validate_template(doc).valid:
            docs.append(Template.from_dict(doc))
        elif verbose:
            click.echo(f"Skipping invalid template: {path}", err=True)

    cli_output = input_file.read()
    if not cli_output.strip():
        click.echo("Error: No input provided", err=True)
        raise SystemExit(1)

    start_time = time.time()
    result = find_best_template(cli_output, docs, FsmEngine(), command_filter)
    elapsed = time.time() - start_time

    if output_json:
        out = result.to_dict(top)
        out['elapsedSeconds'] = elapsed
        click.echo(json.dumps(out, indent=2, default=str))
        return

    click.echo("=" * 60)
    click.echo("RESULTS")
    click.echo("=" * 60)

    if result.template_id:
        click.echo(f"Best template: {click.style(result.template_id, fg='green', bold=True)}")
        click.echo(f"Score: {result.score:.2f}")
        click.echo(f"Records parsed: {len(result.records or [])}")
    else:
        click.echo(click.style("No matching template found", fg='red'))

    if result.all_scores and top > 1:
        click.echo(f"\nTop {min(top, len(result.all_scores))} matches:")
        for i, (template_id, score, records) in enumerate(result.all_scores[:top], 1):
            marker = " <--" if template_id == result.template_id else ""
            click.echo(f"  {i}. {template_id}: score={score:.2f}, records={records}{marker}")

    click.echo(f"\nElapsed: {elapsed:.2f}s")

    if result.records and verbose:
        click.echo()
        print_records(result.records)


# =============================================================================
# BUILT-IN EXAMPLES
# =============================================================================

INVENTORY_TEXTFSM = r'''Value PORT ([0-9/]+)
Value NAME (\S+)
Value SN (\S+)
Value DESCR (.+)
Value VID (\d+\.\d+|\d+)

Start
  ^\s*System\s+\S+?$$ -> Chassis

Chassis
  ^\s+${VID}\s+${SN}\s+\d+-\d+-\d+ -> Record
  ^\s*System.+(power supply|power-supply) -> Power_Supply

Power_Supply
  ^\s+Slot
  ^\s+-
  ^\s+${PORT}\s+${NAME}\s+${SN} -> Record
  ^\s*System.+(fan) -> Fan

Fan
  ^\s+Module
  ^\s+-
  ^\s+${PORT}?\s+\d+?\s+${NAME}?\s+${SN} -> Record
'''

INVENTORY_OUTPUT = '''System information
  DCS-7150S-52-CL 52-port SFP+ 10GigE 1RU + Clock
  02.00 JPE13120702 2013-03-27

System has 2 power supply slots
  Slot Model            Serial Number
  ---- ---------------- ----------------
  1    PWR-460AC-F      K192KU00241CZ
  2    PWR-460AC-F      K192L200751CZ

System has 2 fan modules
  Module Number of Fans Model            Serial Number
  ------- --------------- ---------------- ----------------
  1       1               FAN-7000-F       N/A
  2       1               FAN-7000-F       N/A
'''

VERSION_TEMPLATE = {
    'id': 'cisco_ios_show_version',
    'name': 'Cisco IOS show version',
    'vendor': 'cisco',
    'deviceOs': 'ios',
    'command': 'show version',
    'variables': [{'name': 'uptime_parts', 'type': 'list'}],
    'states': [
        {
            'name': 'start',
            'patterns': [
                {'regex': r'Software.*Version (?<version>[^,\s]+)', 'actions': []},
                {
                    'regex': r'^(?<hostname>\S+) uptime is (?<uptime>.+)$',
                    'actions': [{'type': 'set', 'variable': 'uptime_parts', 'fromGroup': 'uptime'}],
                },
                {'regex': r'^System image file is "(?<image>[^"]+)"', 'actions': []},
                {'regex': r'^[Pp]rocessor board ID (?<serial>\S+)', 'actions': [{'type': 'emit'}],
                 'transition': {'to': 'end'}},
            ],
        },
    ],
}

VERSION_OUTPUT = '''Cisco IOS Software, C2900 Software (C2900-UNIVERSALK9-M), Version 15.1(4)M4
Technical Support: http://www.cisco.com/techsupport
Copyright (c) 1986-2012 by Cisco Systems, Inc.

router01 uptime is 2 weeks, 3 days, 14 hours, 22 minutes
System returned to ROM by power-on
System image file is "flash:c2900-universalk9-mz.SPA.151-4.M4.bin"

Cisco CISCO2911/K9 (revision 1.0) with 483328K/40960K bytes of memory.
Processor board ID FTX1234A5BC
3 Gigabit Ethernet interfaces
'''

OSPF_TEXTFSM = r'''Value Filldown INSTANCE (\d+)
Value Filldown ROUTER_ID (\d+\.\d+\.\d+\.\d+)
Value Filldown VRF (\S+)
Value AREA (\d+\.\d+\.\d+\.\d+)
Value TYPE (\S+)
Value INTERFACES (\d+)
Value NEIGHBORS (\d+)

Start
  ^OSPF instance ${INSTANCE} with ID ${ROUTER_ID}, VRF ${VRF},.*$$
  ^${AREA}\s+${TYPE}\s+${INTERFACES}\s+${NEIGHBORS}\s+ -> Record
'''

OSPF_OUTPUT = '''OSPF instance 1 with ID 65.87.229.70, VRF default, ASBR
Time since last SPF: 14 s
ID               Type   Intf   Nbrs (full) RTR LSA NW LSA  SUM LSA ASBR LSA TYPE-7 LSA
0.0.0.10         normal 6      2    (2   ) 3       0       0       0       0

OSPF instance 2 with ID 192.168.28.193, VRF mgmtVrf, ASBR
Time since last SPF: 1673 s
ID               Type   Intf   Nbrs (full) RTR LSA NW LSA  SUM LSA ASBR LSA TYPE-7 LSA
0.0.0.0          normal 2      2    (2   ) 113     92      0       0       0'''


def run_table_example(engine: FsmEngine):
    """Table example: Arista show inventory, imported from TextFSM."""
    click.echo("=" * 60)
    click.echo("TABLE EXAMPLE: Arista show inventory (TextFSM import)")
    click.echo("=" * 60)

    template = from_textfsm(INVENTORY_TEXTFSM, 'arista_eos_show_inventory', vendor='arista',
                            command='show inventory')
    click.echo(f"States: {[s.name for s in template.states]}")
    result = engine.parse(INVENTORY_OUTPUT, template)
    print_records(result.records)


def run_paragraph_example(engine: FsmEngine):
    """Paragraph example: one record spread across many lines."""
    click.echo("\n" + "=" * 60)
    click.echo("PARAGRAPH EXAMPLE: Cisco show version")
    click.echo("=" * 60)

    result = engine.parse(VERSION_OUTPUT, VERSION_TEMPLATE, EngineOptions(coerce_types=True))
    for record in result.records:
        for key, value in record.items():
            click.echo(f"  {key}: {value}")
    click.echo(f"Lines processed: {result.meta.lines_processed} (ended early on 'end' transition)")


def run_multisection_example(engine: FsmEngine):
    """Multi-section example: Filldown values carried into every row."""
    click.echo("\n" + "=" * 60)
    click.echo("MULTI-SECTION EXAMPLE: OSPF Summary (Filldown)")
    click.echo("=" * 60)

    filldown_vars, regular_vars = filldown_values(OSPF_TEXTFSM)
    click.echo(f"Filldown vars: {filldown_vars}")
    click.echo(f"Regular vars: {regular_vars}")

    template = from_textfsm(OSPF_TEXTFSM, 'arista_eos_show_ip_ospf', vendor='arista')
    result = engine.parse(OSPF_OUTPUT, template)
    print_records(result.records)


@cli.command()
@click.option('--table', is_flag=True, help='Run table example only')
@click.option('--paragraph', is_flag=True, help='Run paragraph example only')
@click.option('--multisection', is_flag=True, help='Run multi-section example only')
def examples(table, paragraph, multisection):
    """Run the built-in examples."""
    engine = FsmEngine()
    run_all = not (table or paragraph or multisection)

    if table or run_all:
        run_table_example(engine)
    if paragraph or run_all:
        run_paragraph_example(engine)
    if multisection or run_all:
        run_multisection_example(engine)


def main():
    """Entry point for console script."""
    cli(auto_envvar_prefix='FSMPARSE')


if __name__ == "__main__":
    main()
