"""Tests for response views."""
import pytest

from mantapy.core.exceptions import MantaException
from mantapy.core.request import TransportResponse, freeze_headers
from mantapy.core.response import (
    TreeOperationResult,
    bytes_response,
    header_response,
    json_list_response,
    object_response,
    parse_json_list,
    parse_text_list,
    stream_response,
    text_list_response,
)

HEADERS = [
    ('Content-Type', 'application/x-json-stream; type=directory'),
    ('x-request-id', 'req-1'),
    ('Set-Cookie', 'a=1'),
    ('Set-Cookie', 'b=2'),
]


def make_response(body=b'', stream=None):
    if stream is not None:
        return TransportResponse(200, 'OK', freeze_headers(HEADERS), stream=iter(stream))
    return TransportResponse(200, 'OK', freeze_headers(HEADERS), content=body)


class TestParsers:
    """Tests for newline-delimited parsers."""

    def test_json_list_skips_blank_and_bad_lines(self):
        """Test blank and malformed lines are skipped."""
        data = '{"name": "a", "type": "object"}\n\nnot json\n{"name": "b", "type": "directory"}\n'

        assert parse_json_list(data) == [
            {'name': 'a', 'type': 'object'},
            {'name': 'b', 'type': 'directory'},
        ]

    def test_json_list_skips_non_objects(self):
        """Test non-object and empty JSON lines are skipped."""
        assert parse_json_list('[1, 2]\n42\n{}\n{"name": "x"}') == [{'name': 'x'}]

    def test_text_list_trims(self):
        """Test text lines are trimmed and blanks dropped."""
        assert parse_text_list('  /acct/stor/a  \n\n\t/acct/stor/b\n   \n') == [
            '/acct/stor/a',
            '/acct/stor/b',
        ]


class TestViews:
    """Tests for response views."""

    def test_headers_are_case_insensitive_multimap(self):
        """Test header lookup ignores case and keeps repeats."""
        view = header_response(make_response())

        assert view.header('X-REQUEST-ID') == 'req-1'
        assert view.header_values('set-cookie') == ['a=1', 'b=2']

    def test_json_list_view(self):
        """Test the JSON list view."""
        view = json_list_response(make_response(b'{"name": "a"}\n{"name": "b"}\n'))

        assert len(view) == 2
        assert [item['name'] for item in view] == ['a', 'b']
        assert view[1] == {'name': 'b'}
        assert view.header('x-request-id') == 'req-1'

    def test_text_list_view(self):
        """Test the text list view."""
        view = text_list_response(make_response(b'one\n two \n\n'))

        assert list(view) == ['one', 'two']

    def test_object_view_accessors(self):
        """Test object view lookups."""
        view = object_response(make_response(b'{"id": "job-1", "state": "running"}'))

        assert view.get('state') == 'running'
        assert view.get('missing', 'default') == 'default'
        assert view['id'] == 'job-1'
        assert 'state' in view
        assert view.header('x-request-id') == 'req-1'

    def test_object_view_is_read_only(self):
        """Test the object view cannot be modified."""
        view = object_response(make_response(b'{"id": "job-1"}'))

        with pytest.raises(TypeError):
            view.data['id'] = 'other'

    def test_object_view_no_attribute_forwarding(self):
        """Test payload keys are not exposed as attributes."""
        view = object_response(make_response(b'{"state": "done"}'))

        assert not hasattr(view, 'state')

    def test_object_view_rejects_arrays(self):
        """Test a JSON array payload is rejected."""
        with pytest.raises(MantaException):
            object_response(make_response(b'[1, 2]'))

    def test_object_view_rejects_invalid_json(self):
        """Test invalid JSON is rejected."""
        with pytest.raises(MantaException):
            object_response(make_response(b'{oops'))

    def test_bytes_view(self):
        """Test the bytes view."""
        view = bytes_response(make_response(b'hello'))

        assert view.data == b'hello'
        assert view.text() == 'hello'
        assert len(view) == 5

    def test_bytes_view_str_on_binary_payload(self):
        """Test str() of a non-UTF-8 payload replaces bad bytes instead of raising."""
        view = bytes_response(make_response(b'ok\xff\xfe'))

        assert str(view) == 'ok\ufffd\ufffd'

    def test_stream_view(self):
        """Test the stream view yields chunks and closes."""
        closed = []
        response = TransportResponse(
            200, 'OK', freeze_headers(HEADERS),
            stream=iter([b'ab', b'', b'cd']), closer=lambda: closed.append(True)
        )

        with stream_response(response) as view:
            assert list(view.iter_chunks()) == [b'ab', b'cd']
            assert view.header('x-request-id') == 'req-1'

        assert closed == [True]

    def test_stream_view_read(self):
        """Test reading a whole stream."""
        view = stream_response(make_response(stream=[b'a', b'b']))

        assert view.read() == b'ab'


class TestTreeOperationResult:
    """Tests for TreeOperationResult."""

    def test_immutable(self):
        """Test results cannot be modified."""
        result = TreeOperationResult(None, ())

        with pytest.raises(Exception):
            result.headers = {}

    def test_len_counts_steps(self):
        """Test len counts the recorded header sets."""
        headers = freeze_headers([])

        assert len(TreeOperationResult(headers, (headers, headers))) == 2
