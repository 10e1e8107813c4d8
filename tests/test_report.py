import json
import unittest
from pathlib import Path

import pytest

from errors import EmptyResultError, PersistenceError
from normalize.models import AggregatedContributor
from report.renderer import render, render_csv, CSV_HEADER
from report.writer import write_leaderboard
from scoring.ranking import rank_contributors

HEADER_LINE = 'Github Username,Total Contributions,Profile,Avatar,Most Contribution To,Contributed To'


def _ranked():
    return rank_contributors([
        AggregatedContributor('alice', 'https://github.com/alice', 'https://avatars/alice', 8, [('acme/r2', 3), ('acme/r1', 5)]),
        AggregatedContributor('bob', 'https://github.com/bob', 'https://avatars/bob', 2, [('acme/r1', 2)]),
    ])


class TestRenderer(unittest.TestCase):
    def test_csv_header_and_rows(self):
        lines = render_csv(_ranked()).splitlines()
        self.assertEqual(','.join(CSV_HEADER), HEADER_LINE)
        self.assertEqual(lines[0], HEADER_LINE)
        self.assertEqual(lines[1], '@alice,8,https://github.com/alice,https://avatars/alice,acme/r1,acme/r1 | acme/r2')
        self.assertEqual(lines[2], '@bob,2,https://github.com/bob,https://avatars/bob,acme/r1,acme/r1')

    def test_csv_without_header(self):
        lines = render_csv(_ranked(), header=False).splitlines()
        self.assertEqual(len(lines), 2)
        self.assertTrue(lines[0].startswith('@alice,'))

    def test_markdown(self):
        md = render(_ranked(), fmt='md', owner='acme')
        self.assertIn('# Contributor Leaderboard for acme', md)
        self.assertIn('| 1 | [@alice](https://github.com/alice) | 8 | acme/r1 | acme/r1 | acme/r2 |', md)

    def test_html_escapes_and_lists_contributors(self):
        ranked = _ranked()
        ranked[1].login = 'bob<script>'
        html = render(ranked, fmt='html', owner='acme', generated_at='2024-01-01T00:00:00+00:00')
        self.assertIn('<table>', html)
        self.assertIn('@alice', html)
        self.assertNotIn('bob<script>', html)
        self.assertIn('2024-01-01', html)

    def test_json(self):
        doc = json.loads(render(_ranked(), fmt='json', owner='acme'))
        self.assertEqual(doc['owner'], 'acme')
        self.assertEqual(doc['contributors'][0]['rank'], 1)
        self.assertEqual(doc['contributors'][0]['repositories'][0], {'repo_full_name': 'acme/r1', 'contributions': 5})

    def test_text(self):
        text = render(_ranked(), fmt='text')
        self.assertEqual(text.splitlines()[0], '1. @alice - 8 contributions (most to acme/r1)')

    def test_unknown_format(self):
        with self.assertRaises(ValueError):
            render(_ranked(), fmt='xlsx')


def test_write_overwrites_by_default(tmp_path):
    path = tmp_path / 'board.csv'
    path.write_text('stale\n', encoding='utf-8')
    written = write_leaderboard(_ranked(), path=str(path))
    assert written == str(path)
    lines = path.read_text(encoding='utf-8').splitlines()
    assert lines[0] == HEADER_LINE
    assert len(lines) == 3


def test_append_writes_header_once(tmp_path):
    path = tmp_path / 'board.csv'
    write_leaderboard(_ranked(), path=str(path), mode='append')
    write_leaderboard(_ranked(), path=str(path), mode='append')
    lines = path.read_text(encoding='utf-8').splitlines()
    assert lines.count(HEADER_LINE) == 1
    assert len(lines) == 5


def test_append_to_empty_file_writes_header(tmp_path):
    path = tmp_path / 'board.csv'
    path.touch()
    write_leaderboard(_ranked(), path=str(path), mode='append')
    assert path.read_text(encoding='utf-8').splitlines()[0] == HEADER_LINE


def test_creates_missing_directories(tmp_path):
    path = tmp_path / 'reports' / 'nested' / 'board.md'
    write_leaderboard(_ranked(), path=str(path), fmt='md', owner='acme')
    assert Path(path).read_text(encoding='utf-8').startswith('# Contributor Leaderboard')


def test_refuses_empty_leaderboard(tmp_path):
    with pytest.raises(EmptyResultError):
        write_leaderboard([], path=str(tmp_path / 'board.csv'))
    assert not (tmp_path / 'board.csv').exists()


def test_unwritable_path_raises_persistence_error(tmp_path):
    with pytest.raises(PersistenceError) as excinfo:
        write_leaderboard(_ranked(), path=str(tmp_path))
    assert excinfo.value.path == str(tmp_path)


def test_append_requires_csv(tmp_path):
    with pytest.raises(ValueError):
        write_leaderboard(_ranked(), path=str(tmp_path / 'board.md'), mode='append', fmt='md')
