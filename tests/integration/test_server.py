"""
Integration tests: a real server on a real port.
"""

import re
import socket
import threading

import pytest


TIMESTAMP = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\.\d{6} UTC$")


class TestServing:
    """End-to-end request/response tests."""

    def test_get_index_html(self, running_server):
        response = running_server.request(b"GET /index.html HTTP/1.0\n\n")

        assert response == (
            b"HTTP/1.0 200 OK\n"
            b"statichttp/0.1\n"
            b"text/html\n"
            b"2\n"
            b"\n"
            b"hi"
        )

    def test_root_serves_index(self, running_server):
        response = running_server.request(b"GET / HTTP/1.0\n\n")
        assert response.endswith(b"text/html\n2\n\nhi")

    def test_crlf_request_with_headers(self, running_server, sample_get_request):
        response = running_server.request(sample_get_request)
        assert response.startswith(b"HTTP/1.0 200 OK\n")

    def test_plain_text(self, running_server):
        response = running_server.request(b"GET /a.txt HTTP\n\n")
        assert response == b"HTTP/1.0 200 OK\nstatichttp/0.1\ntext/plain\n5\n\nalpha"

    def test_post_is_400(self, running_server, sample_post_request):
        response = running_server.request(sample_post_request)
        assert response == b"HTTP/1.0 400 Bad Request\nstatichttp/0.1\n\n<h1>400 Bad Request</h1>"

    def test_old_protocol_is_400(self, running_server):
        response = running_server.request(b"GET /a.txt HTTP/0.8\n\n")
        assert response.startswith(b"HTTP/1.0 400 Bad Request\n")

    def test_missing_file_is_404(self, running_server):
        response = running_server.request(b"GET /nope.txt HTTP/1.0\n\n")
        assert response == b"HTTP/1.0 404 Not Found\nstatichttp/0.1\n\n<h1>404 Not Found</h1>"

    def test_empty_directory_is_404(self, running_server):
        response = running_server.request(b"GET /empty/ HTTP/1.0\n\n")
        assert response.startswith(b"HTTP/1.0 404 Not Found\n")

    def test_traversal_is_403(self, running_server):
        response = running_server.request(b"GET /../secret.txt HTTP/1.0\n\n")
        assert response.startswith(b"HTTP/1.0 403 Forbidden\n")
        assert b"top secret" not in response

    @pytest.mark.parametrize("data", [b"", b"\n\n", b"GET\n\n", b"GET / HTTP/1.0 x\n\n"])
    def test_malformed_gets_no_bytes(self, running_server, data):
        assert running_server.request(data) == b""


class TestRequestLog:
    """Tests for server.log contents."""

    def test_one_record_per_response(self, running_server):
        running_server.request(b"GET /index.html HTTP/1.0\n\n")
        running_server.request(b"GET /nope.txt HTTP/1.0\n\n")
        running_server.request(b"POST /a.txt HTTP/1.0\n\n")

        text = running_server.log_text(3)
        records = [r.split("\n") for r in text.split("\n\n") if r]

        assert len(records) == 3
        by_line = {r[0]: r for r in records}

        assert by_line["GET /index.html HTTP/1.0"][2] == "200"
        assert by_line["GET /nope.txt HTTP/1.0"][2] == "404"
        assert by_line["POST /a.txt HTTP/1.0"][2] == "400"
        for record in records:
            assert TIMESTAMP.match(record[1])

    def test_malformed_is_not_logged(self, running_server):
        running_server.request(b"garbage\n\n")
        running_server.request(b"GET /a.txt HTTP/1.0\n\n")

        text = running_server.log_text(1)
        assert text.startswith("GET /a.txt HTTP/1.0\n")
        assert "garbage" not in text

    def test_log_truncated_at_startup(self, config, tmp_path, make_server):
        log_path = tmp_path / "server.log"
        log_path.write_text("old contents\n\n")
        config.log_file = str(log_path)

        make_server(config)

        assert "old contents" not in log_path.read_text()


class TestConcurrency:
    """Many clients at once."""

    def _hammer(self, srv, clients: int):
        results = [None] * clients

        def client(i):
            path = b"/a.txt" if i % 2 else b"/missing"
            results[i] = srv.request(b"GET " + path + b" HTTP/1.0\n\n")

        threads = [threading.Thread(target=client, args=(i,)) for i in range(clients)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10.0)

        return results

    def test_thread_per_connection(self, running_server):
        clients = 20
        results = self._hammer(running_server, clients)

        for i, response in enumerate(results):
            expected = b"HTTP/1.0 200 OK\n" if i % 2 else b"HTTP/1.0 404 Not Found\n"
            assert response.startswith(expected)

        text = running_server.log_text(clients)
        records = [r for r in text.split("\n\n") if r]
        assert len(records) == clients
        assert all(len(r.split("\n")) == 3 for r in records)

    def test_pooled(self, pooled_server):
        results = self._hammer(pooled_server, 8)
        assert all(r.startswith(b"HTTP/1.0 ") for r in results)

    def test_slow_client_does_not_block_others(self, running_server):
        """Test that a client stuck mid-request does not hold up the next one."""
        with socket.create_connection(("127.0.0.1", running_server.port)) as slow:
            slow.sendall(b"GET /a.txt HT")

            response = running_server.request(b"GET /index.html HTTP/1.0\n\n")
            assert response.endswith(b"\n\nhi")


class TestLifecycle:
    """Server start and stop."""

    def test_bound_to_real_port(self, running_server):
        assert running_server.port != 0
        assert running_server.server.is_running

    def test_shutdown_stops_listening(self, config, make_server):
        srv = make_server(config)
        port = srv.port
        srv.stop()

        assert not srv.server.is_running
        with pytest.raises(OSError):
            socket.create_connection(("127.0.0.1", port), timeout=1.0)
