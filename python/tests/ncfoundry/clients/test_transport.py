import os, sys, pdb, json
import unittest as test
from unittest.mock import patch, Mock

import requests

from ncfoundry.clients import transport as tpt
from ncfoundry.settings import InMemorySettings
from ncfoundry.exceptions import *

def mock_response(code=200, ctype="application/json", data=None, text=None, content=None,
                  reason="OK"):
    resp = Mock()
    resp.status_code = code
    resp.reason = reason
    resp.headers = { "content-type": ctype }
    resp.url = "https://cloud.example.com/goob"
    resp.text = text if text is not None else (json.dumps(data) if data is not None else "")
    resp.content = content if content is not None else resp.text.encode('utf-8')
    if data is not None:
        resp.json.return_value = data
    else:
        resp.json.side_effect = ValueError("not JSON")
    return resp

class TestFunctions(test.TestCase):

    def test_join_path(self):
        self.assertEqual(tpt.join_path("remote.php/dav", "files", "alice", ""), "remote.php/dav/files/alice")
        self.assertEqual(tpt.join_path("/a/", "/b", "c/"), "a/b/c")
        self.assertEqual(tpt.join_path("", "/"), "")

    def test_decode_response(self):
        resp = mock_response(data={"ocs": {}})
        self.assertEqual(tpt.decode_response(resp), {"ocs": {}})

        resp = mock_response(ctype="application/xml; charset=utf-8", text="<d:multistatus/>")
        self.assertEqual(tpt.decode_response(resp), "<d:multistatus/>")

        resp = mock_response(ctype="image/png", content=b"\x89PNG")
        self.assertEqual(tpt.decode_response(resp), b"\x89PNG")

        resp = mock_response(ctype="application/json", text="<html>")
        with self.assertRaises(UnexpectedRemoteResponse):
            tpt.decode_response(resp)

class TestNextcloudTransport(test.TestCase):

    def setUp(self):
        self.settings = InMemorySettings({ "url": "https://cloud.example.com",
                                           "user_name": "alice", "password": "secret" })
        self.cli = tpt.NextcloudTransport(self.settings)

    def test_base_url(self):
        self.assertEqual(self.cli.base_url, "https://cloud.example.com/")
        self.settings.set("url", "https://cloud.example.com/nc/")
        self.assertEqual(self.cli.base_url, "https://cloud.example.com/nc/")
        self.settings.set("url", "")
        with self.assertRaises(UnsetServerURL):
            self.cli.base_url

    def test_paths(self):
        self.assertEqual(self.cli.dav_root(), "remote.php/dav/files/alice")
        self.assertEqual(self.cli.dav_endpoint(""), "remote.php/dav/files/alice")
        self.assertEqual(self.cli.dav_endpoint("img/"), "remote.php/dav/files/alice/img/")
        self.assertEqual(self.cli.dav_endpoint("battle map.jpg"),
                         "remote.php/dav/files/alice/battle%20map.jpg")
        self.assertEqual(self.cli.sharing_path("img/cat.png"), "/img/cat.png")
        self.assertEqual(self.cli.sharing_path(""), "/")

        self.settings.set("subdirectory", "vtt")
        self.assertEqual(self.cli.dav_root(), "remote.php/dav/files/alice/vtt")
        self.assertEqual(self.cli.dav_endpoint("img/cat.png"), "remote.php/dav/files/alice/vtt/img/cat.png")
        self.assertEqual(self.cli.sharing_path("img/cat.png"), "/vtt/img/cat.png")
        self.assertEqual(self.cli.sharing_path("img/"), "/vtt/img/")
        self.assertEqual(self.cli.sharing_path(""), "/vtt")

    @patch('requests.request')
    def test_request(self, mock_request):
        mock_request.return_value = mock_response(data={"ocs": {"meta": {"status": "ok"}, "data": []}})
        out = self.cli.get("ocs/v2.php/apps/files_sharing/api/v1/shares", {"path": "/a.png"})
        self.assertEqual(out['ocs']['data'], [])

        args, kw = mock_request.call_args
        self.assertEqual(args[0], "GET")
        self.assertEqual(args[1], "https://cloud.example.com/ocs/v2.php/apps/files_sharing/api/v1/shares")
        self.assertEqual(kw['headers']['OCS-APIRequest'], "true")
        self.assertEqual(kw['params'], {"path": "/a.png"})
        self.assertEqual(kw['auth'].username, "alice")
        self.assertEqual(kw['auth'].password, "secret")

    @patch('requests.request')
    def test_propfind(self, mock_request):
        mock_request.return_value = mock_response(ctype="application/xml", text="<d:multistatus/>",
                                                  code=207, reason="Multi-Status")
        out = self.cli.propfind("img/", "<d:propfind/>", 1)
        self.assertEqual(out, "<d:multistatus/>")

        args, kw = mock_request.call_args
        self.assertEqual(args[0], "PROPFIND")
        self.assertEqual(args[1], "https://cloud.example.com/remote.php/dav/files/alice/img/")
        self.assertEqual(kw['headers']['Depth'], "1")
        self.assertEqual(kw['headers']['OCS-APIRequest'], "true")
        self.assertEqual(kw['data'], "<d:propfind/>")

    @patch('requests.request')
    def test_put_mkcol(self, mock_request):
        mock_request.return_value = mock_response(code=201, ctype="text/html", text="", reason="Created")
        self.cli.put("a.png", b"\x89PNG", "image/png")
        args, kw = mock_request.call_args
        self.assertEqual(args[0], "PUT")
        self.assertEqual(kw['data'], b"\x89PNG")
        self.assertEqual(kw['headers']['Content-Type'], "image/png")

        self.cli.mkcol("maps/")
        args, kw = mock_request.call_args
        self.assertEqual(args[0], "MKCOL")
        self.assertEqual(args[1], "https://cloud.example.com/remote.php/dav/files/alice/maps/")

    @patch('requests.request')
    def test_unauthorized(self, mock_request):
        mock_request.return_value = mock_response(code=401, ctype="text/html", text="no way",
                                                  reason="Unauthorized")
        with self.assertRaises(RemoteUserUnauthorized) as cm:
            self.cli.propfind("", "<d:propfind/>")
        self.assertEqual(cm.exception.code, 401)
        self.assertEqual(cm.exception.reason, "Unauthorized")

    @patch('requests.request')
    def test_error_codes(self, mock_request):
        mock_request.return_value = mock_response(code=404, ctype="text/html", text="gone",
                                                  reason="Not Found")
        with self.assertRaises(RemoteResourceNotFound):
            self.cli.propfind("goob/", "<d:propfind/>")

        mock_request.return_value = mock_response(code=409, ctype="text/html", reason="Conflict")
        with self.assertRaises(RemoteClientError) as cm:
            self.cli.mkcol("a/b/")
        self.assertEqual(cm.exception.code, 409)

        mock_request.return_value = mock_response(code=502, ctype="text/html", reason="Bad Gateway")
        with self.assertRaises(RemoteServerError) as cm:
            self.cli.get("ocs")
        self.assertEqual(cm.exception.code, 502)

        mock_request.return_value = mock_response(code=304, ctype="text/html", reason="Not Modified")
        with self.assertRaises(UnexpectedRemoteResponse):
            self.cli.get("ocs")

    @patch('requests.request')
    def test_comm_error(self, mock_request):
        mock_request.side_effect = requests.ConnectionError("CORS says no")
        with self.assertRaises(RemoteCommError) as cm:
            self.cli.propfind("", "<d:propfind/>")
        self.assertIn("CORS says no", str(cm.exception))

    @patch('requests.request')
    def test_unset_url(self, mock_request):
        self.settings.set("url", "  ")
        with self.assertRaises(UnsetServerURL):
            self.cli.propfind("", "<d:propfind/>")
        self.assertFalse(mock_request.called)

    def test_bad_method(self):
        with self.assertRaises(ValueError):
            self.cli.request("remote.php/dav", "DELETE")


if __name__ == '__main__':
    test.main()
