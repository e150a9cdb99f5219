"""Template builders shared by the tests"""

from typing import Dict


def single_state(*patterns, variables=None, template_id='test') -> Dict:
    """Build a one-state template document from pattern dicts"""
    doc = {
        'id': template_id,
        'name': template_id.title(),
        'vendor': 'generic',
        'states': [{'name': 'start', 'patterns': list(patterns)}],
    }
    if variables:
        doc['variables'] = variables
    return doc
