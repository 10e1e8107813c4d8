import unittest
from unittest.mock import patch

import requests

from errors import TransportError, DecodeError
from ingest.github import GitHubClient, PER_PAGE
from fakes import page_response, numbered_page


def _pages(*sizes):
    """Build page responses of the given sizes with consecutive item ids."""
    responses = []
    start = 0
    for size in sizes:
        responses.append(page_response(numbered_page(start, size)))
        start += size
    return responses


class TestFetchAll(unittest.TestCase):
    def setUp(self):
        self.client = GitHubClient(token=None, max_retries=1)
        self.url = 'https://api.github.com/orgs/acme/repos'

    def test_fetches_every_page_in_order(self):
        with patch('storage.retry.requests.get', side_effect=_pages(100, 100, 37)) as mocked_get:
            items = self.client.fetch_all(self.url)
        self.assertEqual(len(items), 237)
        self.assertEqual([i['id'] for i in items], list(range(237)))
        pages = [call.kwargs['params']['page'] for call in mocked_get.call_args_list]
        self.assertEqual(pages, [1, 2, 3])
        self.assertTrue(all(call.kwargs['params']['per_page'] == PER_PAGE for call in mocked_get.call_args_list))

    def test_full_last_page_followed_by_empty_page(self):
        with patch('storage.retry.requests.get', side_effect=_pages(100, 0)) as mocked_get:
            items = self.client.fetch_all(self.url)
        self.assertEqual(len(items), 100)
        self.assertEqual(mocked_get.call_count, 2)

    def test_short_first_page_is_terminal(self):
        with patch('storage.retry.requests.get', side_effect=_pages(3)) as mocked_get:
            items = self.client.fetch_all(self.url)
        self.assertEqual(len(items), 3)
        self.assertEqual(mocked_get.call_count, 1)

    def test_start_page(self):
        with patch('storage.retry.requests.get', side_effect=_pages(5)) as mocked_get:
            self.client.fetch_all(self.url, start_page=4)
        self.assertEqual(mocked_get.call_args.kwargs['params']['page'], 4)

    def test_continuation_http_failure_keeps_earlier_pages(self):
        responses = _pages(100) + [page_response({'message': 'Server Error'}, status=500)]
        with patch('storage.retry.requests.get', side_effect=responses):
            items = self.client.fetch_all(self.url)
        self.assertEqual(len(items), 100)

    def test_continuation_connection_failure_keeps_earlier_pages(self):
        responses = _pages(100, 100) + [requests.ConnectionError('reset by peer')]
        with patch('storage.retry.requests.get', side_effect=responses):
            items = self.client.fetch_all(self.url)
        self.assertEqual(len(items), 200)

    def test_continuation_decode_failure_keeps_earlier_pages(self):
        responses = _pages(100) + [page_response({'not': 'a list'})]
        with patch('storage.retry.requests.get', side_effect=responses):
            items = self.client.fetch_all(self.url)
        self.assertEqual(len(items), 100)

    def test_first_page_http_failure_raises(self):
        with patch('storage.retry.requests.get', return_value=page_response({'message': 'Not Found'}, status=404)):
            with self.assertRaises(TransportError) as ctx:
                self.client.fetch_all(self.url)
        self.assertEqual(ctx.exception.status, 404)
        self.assertIn('Not Found', str(ctx.exception))

    def test_first_page_connection_failure_raises(self):
        with patch('storage.retry.requests.get', side_effect=requests.Timeout('timed out')):
            with self.assertRaises(TransportError) as ctx:
                self.client.fetch_all(self.url)
        self.assertIsNone(ctx.exception.status)

    def test_first_page_non_array_raises_decode_error(self):
        with patch('storage.retry.requests.get', return_value=page_response({'message': 'odd'})):
            with self.assertRaises(DecodeError):
                self.client.fetch_all(self.url)

    def test_first_page_invalid_json_raises_decode_error(self):
        resp = page_response(None)
        resp.json.side_effect = ValueError('Expecting value')
        resp.text = '<html>oops</html>'
        with patch('storage.retry.requests.get', return_value=resp):
            with self.assertRaises(DecodeError):
                self.client.fetch_all(self.url)

    def test_no_content_is_an_empty_page(self):
        resp = page_response(None, status=204)
        resp.json.side_effect = ValueError('no body')
        with patch('storage.retry.requests.get', return_value=resp):
            self.assertEqual(self.client.fetch_all(self.url), [])

    def test_max_pages_caps_pagination(self):
        client = GitHubClient(max_retries=1, max_pages=2)
        with patch('storage.retry.requests.get', side_effect=_pages(100, 100, 100)) as mocked_get:
            items = client.fetch_all(self.url)
        self.assertEqual(len(items), 200)
        self.assertEqual(mocked_get.call_count, 2)

    def test_requests_carry_timeout(self):
        client = GitHubClient(max_retries=1, timeout=7.5)
        with patch('storage.retry.requests.get', side_effect=_pages(1)) as mocked_get:
            client.fetch_all(self.url)
        self.assertEqual(mocked_get.call_args.kwargs['timeout'], 7.5)


class TestEndpoints(unittest.TestCase):
    def test_token_is_optional(self):
        self.assertNotIn('Authorization', GitHubClient().headers)
        self.assertEqual(GitHubClient(token='abc').headers['Authorization'], 'Bearer abc')

    def test_repository_listing_urls(self):
        client = GitHubClient(base_url='https://ghe.example.com/api/v3/')
        self.assertEqual(client.repos_url('acme'), 'https://ghe.example.com/api/v3/orgs/acme/repos')
        self.assertEqual(client.repos_url('octocat', 'user'), 'https://ghe.example.com/api/v3/users/octocat/repos')
        with self.assertRaises(ValueError):
            client.repos_url('acme', 'team')

    def test_list_contributors_url(self):
        client = GitHubClient(max_retries=1)
        with patch('storage.retry.requests.get', side_effect=_pages(2)) as mocked_get:
            items = client.list_contributors('acme/widgets')
        self.assertEqual(len(items), 2)
        self.assertEqual(mocked_get.call_args.args[0], 'https://api.github.com/repos/acme/widgets/contributors')

    def test_list_repositories_uses_owner_type(self):
        client = GitHubClient(max_retries=1)
        with patch('storage.retry.requests.get', side_effect=_pages(1)) as mocked_get:
            client.list_repositories('octocat', 'user')
        self.assertEqual(mocked_get.call_args.args[0], 'https://api.github.com/users/octocat/repos')


if __name__ == '__main__':
    unittest.main()
