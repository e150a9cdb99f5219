"""
Template Auto-Match

Finds the best template for unknown CLI output by parsing it with every
candidate template and scoring each result.

Usage:
    result = find_best_template(cli_output, templates, command_filter="show version")
    result.template_id, result.records, result.score
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .engine import FsmEngine, default_engine
from .errors import FsmParseError, TemplateError
from .logs import get_logger
from .models import Template, as_template

logger = get_logger(__name__)


@dataclass
class MatchResult:
    template_id: Optional[str] = None
    records: Optional[List[Dict[str, Any]]] = None
    score: float = 0.0
    all_scores: List[Tuple[str, float, int]] = field(default_factory=list)

    def to_dict(self, top: Optional[int] = None) -> Dict[str, Any]:
        scores = self.all_scores[:top] if top else self.all_scores
        return {
            'bestTemplate': self.template_id,
            'score': self.score,
            'records': self.records or [],
            'topMatches': [
                {'template': t, 'score': s, 'records': r} for t, s, r in scores
            ],
        }


def score_records(records: List[Dict[str, Any]], command: str = '') -> float:
    """
    Score template match quality (0-100 scale).

    Factors:
    - Record count (0-30 pts): Did the template find data?
    - Field richness (0-30 pts): How many fields per record?
    - Population rate (0-25 pts): Are fields actually filled?
    - Consistency (0-15 pts): Uniform data across records?
    """
    if not records:
        return 0.0

    num_records = len(records)
    fields = []
    for record in records:
        for key in record:
            if key not in fields:
                fields.append(key)
    num_fields = len(fields)

    # Version commands describe one device: expect exactly 1 record
    if 'version' in (command or '').lower():
        record_score = 30.0 if num_records == 1 else max(0.0, 15 - (num_records - 1) * 5)
    elif num_records >= 10:
        record_score = 30.0
    elif num_records >= 3:
        record_score = 20.0 + (num_records - 3) * (10.0 / 7.0)
    else:
        record_score = num_records * 10.0

    if num_fields >= 10:
        field_score = 30.0
    elif num_fields >= 6:
        field_score = 20.0 + (num_fields - 6) * 2.5
    elif num_fields >= 3:
        field_score = 10.0 + (num_fields - 3) * (10.0 / 3.0)
    else:
        field_score = num_fields * 5.0

    total_cells = num_records * num_fields
    populated_cells = 0
    fill_counts = {key: 0 for key in fields}
    for record in records:
        for key, value in record.items():
            if value is not None and str(value).strip():
                populated_cells += 1
                fill_counts[key] += 1

    population_rate = populated_cells / total_cells if total_cells > 0 else 0
    population_score = population_rate * 25.0

    # Consistency = fields that are either always filled or never filled
    if num_records > 1 and num_fields > 0:
        consistent_fields = sum(
            1 for count in fill_counts.values()
            if count == 0 or count == num_records
        )
        consistency_score = consistent_fields / num_fields * 15.0
    else:
        consistency_score = 15.0

    return record_score + field_score + population_score + consistency_score


def filter_templates(templates: Iterable[Template], command_filter: Optional[str] = None) -> List[Template]:
    """
    Keep templates whose command or id contains every filter term.
    Terms are split on '_', '-' and spaces; terms of 2 characters or less are ignored.
    """
    templates = list(templates)
    if not command_filter:
        return templates

    terms = [t for t in command_filter.replace('-', '_').replace(' ', '_').lower().split('_') if len(t) > 2]
    selected = []
    for template in templates:
        haystack = f"{template.command or ''} {template.id}".lower().replace(' ', '_').replace('-', '_')
        if all(term in haystack for term in terms):
            selected.append(template)
    return selected


def _doc_id(doc) -> Optional[str]:
    if isinstance(doc, Mapping):
        return doc.get('id')
    return getattr(doc, 'id', None)


def find_best_template(
        device_output: str,
        templates: Iterable[Union[Template, Mapping]],
        engine: Optional[FsmEngine] = None,
        command_filter: Optional[str] = None
) -> MatchResult:
    """
    Try filtered templates against the output and return the best match.

    Templates that cannot be converted or compiled are skipped. ``all_scores`` holds
    (template_id, score, record_count) for every non-zero score, best first.
    """
    engine = engine or default_engine()
    converted = []
    for doc in templates:
        try:
            converted.append(as_template(doc))
        except TemplateError as e:
            logger.info("match_template_failed", template_id=_doc_id(doc), error=str(e))
    candidates = filter_templates(converted, command_filter)
    result = MatchResult()

    logger.debug("match_started", candidates=len(candidates), filter=command_filter)

    for template in candidates:
        try:
            parsed = engine.parse(device_output, template)
        except (FsmParseError, IndexError) as e:
            logger.info("match_template_failed", template_id=template.id, error=str(e))
            continue

        score = score_records(parsed.records, template.command or template.id)
        if score > 0:
            result.all_scores.append((template.id, score, len(parsed.records)))

        if score > result.score:
            result.score = score
            result.template_id = template.id
            result.records = parsed.records

    result.all_scores.sort(key=lambda x: x[1], reverse=True)
    return result
