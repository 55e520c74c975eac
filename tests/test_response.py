import json

import pytest

from curlmux import ContentTypeError, CurlResponse, JsonResponse


def make_response(content_type=None, body=b'{"a": 1}'):
    headers = [('Content-Type', content_type)] if content_type is not None else []
    return CurlResponse(status_code=200, headers=headers, body=body)


def test_header_lookup_is_case_insensitive():
    response = CurlResponse(
        status_code=200,
        headers=[('Set-Cookie', 'a=1'), ('set-cookie', 'b=2'), ('Server', 'test')],
    )

    assert response.get_header('SET-COOKIE') == ['a=1', 'b=2']
    assert response.get_header_line('set-cookie') == 'a=1, b=2'
    assert response.has_header('server')
    assert response.get_header_line('X-Missing') == ''


def test_text_replaces_invalid_bytes():
    response = CurlResponse(status_code=200, body=b'ok\xff')

    assert response.text == 'ok�'


@pytest.mark.parametrize('content_type', [
    'application/json',
    'application/json; charset=utf-8',
])
def test_json_content_type_accepted(content_type):
    JsonResponse(make_response(content_type)).check_content_type()


@pytest.mark.parametrize('content_type', ['text/html', 'text/json', None])
def test_other_content_type_rejected(content_type):
    with pytest.raises(ContentTypeError) as exc:
        JsonResponse(make_response(content_type)).check_content_type()

    assert exc.value.expected == 'application/json'
    assert exc.value.content_type == (content_type or '')


def test_get_json_decodes_body():
    assert JsonResponse(make_response('application/json')).get_json() == {'a': 1}


def test_get_json_invalid_body_raises():
    with pytest.raises(json.JSONDecodeError):
        JsonResponse(make_response('application/json', body=b'<html>')).get_json()


def test_to_dict_reports_size():
    data = make_response('application/json').to_dict()

    assert data['size'] == len(b'{"a": 1}')
    assert data['headers'] == [['Content-Type', 'application/json']]
