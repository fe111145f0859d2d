#!/usr/bin/env python3
"""
Test suite for field definitions and registry snapshots.
"""

import unittest

from core.exceptions import InvalidFieldDefinition, UnknownField
from core.registry import FieldDefinition, FieldType, RegistrySnapshot


def _field(name, field_type='text', weight=10, kinds=('agent', 'client'), **kwargs):
    return FieldDefinition(
        field_name=name,
        field_type=field_type,
        matching_weight=weight,
        entity_types=frozenset(kinds),
        **kwargs
    )


class TestFieldDefinition(unittest.TestCase):
    """Construction invariants of FieldDefinition."""

    def test_01_field_type_coerced_to_enum(self):
        definition = _field('notes', field_type='textarea')
        self.assertIs(definition.field_type, FieldType.TEXTAREA)
        self.assertEqual(definition.display_name, 'Notes')

    def test_02_rejects_unknown_type(self):
        with self.assertRaises(InvalidFieldDefinition):
            _field('rating', field_type='stars')

    def test_03_rejects_out_of_range_weight(self):
        for weight in (-1, 101, 12.5, True):
            with self.assertRaises(InvalidFieldDefinition):
                _field('notes', weight=weight)

    def test_04_rejects_empty_entity_types(self):
        with self.assertRaises(InvalidFieldDefinition):
            _field('notes', kinds=())

    def test_05_ai_matching_only_on_text(self):
        _field('bio', field_type='textarea', use_ai_matching=True)
        with self.assertRaises(InvalidFieldDefinition):
            _field('years', field_type='number', use_ai_matching=True)

    def test_06_low_confidence_text_field(self):
        self.assertTrue(_field('notes', weight=20).is_low_confidence)
        self.assertFalse(_field('notes', weight=20, use_ai_matching=True).is_low_confidence)
        self.assertFalse(_field('notes', weight=0).is_low_confidence)

    def test_07_allowed_values_issue(self):
        """Malformed choices are reported, not rejected at construction."""
        self.assertEqual(_field('tier', field_type='select').allowed_values_issue(), "missing allowed_values")
        self.assertEqual(
            _field('tier', field_type='select', allowed_values=()).allowed_values_issue(),
            "empty allowed_values",
        )
        self.assertEqual(
            _field('tier', field_type='multi_select', allowed_values=('Gold', 'gold')).allowed_values_issue(),
            "duplicate allowed_values",
        )
        self.assertIsNone(_field('tier', field_type='select', allowed_values=['a', 'b']).allowed_values_issue())
        self.assertIsNone(_field('notes').allowed_values_issue())

    def test_08_from_record(self):
        definition = FieldDefinition.from_record({
            'field_name': 'specialization',
            'field_type': 'select',
            'matching_weight': 40.0,
            'entity_types': ['agent'],
            'allowed_values': {'not': 'a list'},
            'active': True,
        })
        self.assertEqual(definition.matching_weight, 40)
        self.assertIsNone(definition.allowed_values)
        self.assertEqual(definition.entity_types, frozenset({'agent'}))

    def test_09_rejects_mistyped_ordering_and_scale(self):
        for kwargs in (
            {'reference_range': "20"},
            {'reference_range': True},
            {'reference_range': 0},
            {'reference_range': 10 ** 400},
            {'sort_order': "1"},
            {'sort_order': 1.5},
            {'field_group': 3},
        ):
            with self.subTest(**kwargs):
                with self.assertRaises(InvalidFieldDefinition):
                    _field('volume', field_type='number', **kwargs)

    def test_10_integer_reference_range_stored_as_float(self):
        self.assertEqual(_field('volume', field_type='number', reference_range=20).reference_range, 20.0)


class TestRegistrySnapshot(unittest.TestCase):
    """Lookup, ordering and immutability of registry snapshots."""

    def setUp(self):
        self.snapshot = RegistrySnapshot([
            _field('zeta', field_group='profile', sort_order=2),
            _field('alpha', field_group='profile', sort_order=2),
            _field('loose', field_group=None, sort_order=0),
            _field('first', field_group='location', sort_order=5),
            _field('hidden', weight=0, field_group='profile'),
            _field('agent_only', kinds=('agent',), field_group='profile', sort_order=1),
        ], version=3)

    def test_01_deterministic_ordering(self):
        """Grouped fields first, then sort_order, then name; ungrouped last."""
        names = [d.field_name for d in self.snapshot.active_fields_for('agent')]
        self.assertEqual(names, ['first', 'hidden', 'agent_only', 'alpha', 'zeta', 'loose'])

    def test_02_filters_kind_and_weight(self):
        names = [d.field_name for d in self.snapshot.active_fields_for('client', matchable_only=True)]
        self.assertEqual(names, ['first', 'alpha', 'zeta', 'loose'])

    def test_03_get_unknown_field(self):
        with self.assertRaises(UnknownField) as ctx:
            self.snapshot.get('missing')
        self.assertEqual(ctx.exception.field_name, 'missing')
        self.assertIsInstance(ctx.exception, KeyError)

    def test_04_deactivate_returns_new_snapshot(self):
        updated = self.snapshot.deactivate('alpha')

        self.assertEqual(updated.version, 4)
        self.assertFalse(updated.get('alpha').active)
        self.assertTrue(self.snapshot.get('alpha').active)
        self.assertNotIn('alpha', [d.field_name for d in updated.active_fields_for('agent')])
        self.assertIn('alpha', updated)

    def test_05_with_definition_replaces(self):
        updated = self.snapshot.with_definition(_field('alpha', weight=90, field_group='profile'))
        self.assertEqual(updated.get('alpha').matching_weight, 90)
        self.assertEqual(self.snapshot.get('alpha').matching_weight, 10)
        self.assertEqual(len(updated), len(self.snapshot))

    def test_06_fingerprint_tracks_content(self):
        same = RegistrySnapshot(reversed(list(self.snapshot)), version=99)
        self.assertEqual(self.snapshot.fingerprint(), same.fingerprint())
        self.assertNotEqual(self.snapshot.fingerprint(), self.snapshot.deactivate('alpha').fingerprint())

    def test_07_duplicate_names_rejected(self):
        with self.assertRaises(InvalidFieldDefinition):
            RegistrySnapshot([_field('a'), _field('a')])

    def test_08_from_records_skips_bad_rows(self):
        records = [
            {'field_name': 'ok', 'field_type': 'number', 'matching_weight': 10, 'entity_types': ['agent']},
            {'field_name': 'bad_type', 'field_type': 'stars', 'matching_weight': 10, 'entity_types': ['agent']},
            {'field_name': 'no_kinds', 'field_type': 'text', 'matching_weight': 10, 'entity_types': []},
            {'field_name': 'ok', 'field_type': 'text', 'matching_weight': 5, 'entity_types': ['agent']},
        ]
        with self.assertLogs('core.registry.snapshot', level='WARNING') as logs:
            snapshot = RegistrySnapshot.from_records(records, version=7)

        self.assertEqual(len(snapshot), 1)
        self.assertIs(snapshot.get('ok').field_type, FieldType.NUMBER)
        self.assertEqual(snapshot.version, 7)
        self.assertEqual(len(logs.output), 3)

    def test_10_from_records_skips_mistyped_rows(self):
        """A string scale or sort_order drops only that row."""
        records = [
            {'field_name': 'volume', 'field_type': 'number', 'matching_weight': 10,
             'entity_types': ['agent'], 'reference_range': "20"},
            {'field_name': 'tenure', 'field_type': 'number', 'matching_weight': 10,
             'entity_types': ['agent'], 'sort_order': "2", 'field_group': 'profile'},
            {'field_name': 'rating', 'field_type': 'number', 'matching_weight': 10,
             'entity_types': ['agent'], 'sort_order': 1, 'field_group': 'profile'},
        ]
        with self.assertLogs('core.registry.snapshot', level='WARNING') as logs:
            snapshot = RegistrySnapshot.from_records(records)

        self.assertEqual([d.field_name for d in snapshot.active_fields_for('agent')], ['rating'])
        self.assertEqual(len(logs.output), 2)

    def test_09_group_helpers(self):
        self.assertEqual(
            [d.field_name for d in self.snapshot.fields_in_group('profile')],
            ['hidden', 'agent_only', 'alpha', 'zeta'],
        )
        self.assertNotIn('hidden', [d.field_name for d in self.snapshot.matchable_fields()])


if __name__ == '__main__':
    unittest.main()
