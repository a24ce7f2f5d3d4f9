"""
HTTP tests for the file serving and compression endpoints.

Covers:
- 200 vs 206 responses, headers and bodies
- 403 for traversal attempts, 404 for missing files, 416 for ranges past EOF
- Compression responses, download URLs and error mapping
"""

import io
import tempfile
import unittest
import zipfile
from pathlib import Path
from unittest.mock import patch
from urllib.parse import urlsplit

from fastapi.testclient import TestClient

from src.backend.app import create_app
from src.backend.settings.models import ServiceSettings

BASE_URL = "http://files.example.test"


class FilesApiTestCase(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name) / "uploads"
        (self.root / "audio-files").mkdir(parents=True)
        (self.root / "images").mkdir()

        self.audio = bytes(range(256)) * 16  # 4096 bytes
        (self.root / "audio-files" / "song.mp3").write_bytes(self.audio)
        self.image = b"\x89PNG" + b"\x00" * 96
        (self.root / "images" / "cover.png").write_bytes(self.image)

        self.app = create_app(ServiceSettings(upload_dir=str(self.root), base_url=BASE_URL))
        self.client = TestClient(self.app)

    def tearDown(self):
        self.client.close()
        self._tmp.cleanup()


class TestServeFile(FilesApiTestCase):
    def test_full_download(self):
        resp = self.client.get("/api/files/audio-files/song.mp3")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.content, self.audio)
        self.assertEqual(resp.headers["content-type"], "audio/mpeg")
        self.assertEqual(resp.headers["content-length"], "4096")
        self.assertEqual(resp.headers["accept-ranges"], "bytes")
        self.assertEqual(resp.headers["content-disposition"], 'inline; filename="song.mp3"')
        self.assertNotIn("content-range", resp.headers)

    def test_partial_download(self):
        resp = self.client.get("/api/files/audio-files/song.mp3", headers={"Range": "bytes=100-199"})
        self.assertEqual(resp.status_code, 206)
        self.assertEqual(resp.content, self.audio[100:200])
        self.assertEqual(resp.headers["content-range"], "bytes 100-199/4096")
        self.assertEqual(resp.headers["content-length"], "100")

    def test_first_byte(self):
        resp = self.client.get("/api/files/audio-files/song.mp3", headers={"Range": "bytes=0-0"})
        self.assertEqual(resp.status_code, 206)
        self.assertEqual(resp.content, self.audio[:1])
        self.assertEqual(resp.headers["content-range"], "bytes 0-0/4096")

    def test_suffix_range(self):
        resp = self.client.get("/api/files/audio-files/song.mp3", headers={"Range": "bytes=-96"})
        self.assertEqual(resp.status_code, 206)
        self.assertEqual(resp.content, self.audio[-96:])
        self.assertEqual(resp.headers["content-range"], "bytes 4000-4095/4096")

    def test_only_first_range_served(self):
        resp = self.client.get("/api/files/audio-files/song.mp3", headers={"Range": "bytes=0-9,20-29"})
        self.assertEqual(resp.status_code, 206)
        self.assertEqual(resp.content, self.audio[:10])

    def test_malformed_range_serves_full_file(self):
        resp = self.client.get("/api/files/audio-files/song.mp3", headers={"Range": "bytes=abc"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.content, self.audio)
        self.assertNotIn("content-range", resp.headers)

    def test_range_past_eof_is_416(self):
        resp = self.client.get("/api/files/audio-files/song.mp3", headers={"Range": "bytes=4096-4096"})
        self.assertEqual(resp.status_code, 416)
        self.assertEqual(resp.headers["content-range"], "bytes */4096")

    def test_range_ignored_for_images(self):
        resp = self.client.get("/api/files/images/cover.png", headers={"Range": "bytes=0-3"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.content, self.image)
        self.assertEqual(resp.headers["content-type"], "image/png")

    def test_missing_file_is_404(self):
        resp = self.client.get("/api/files/audio-files/missing.mp3")
        self.assertEqual(resp.status_code, 404)
        self.assertIn("error", resp.json())

    def test_encoded_dotdot_directory_is_403(self):
        secret = self.root.parent / "secret.mp3"
        secret.write_bytes(b"top secret")
        # The router decodes '%2E%2E' to a '..' sub_directory segment.
        resp = self.client.get("/api/files/%2E%2E/secret.mp3")
        self.assertEqual(resp.status_code, 403)
        self.assertNotIn(b"top secret", resp.content)
        self.assertIn("error", resp.json())

    def test_file_name_with_literal_percent(self):
        (self.root / "audio-files" / "mix%20final.mp3").write_bytes(b"mix")
        resp = self.client.get("/api/files/audio-files/mix%2520final.mp3")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.content, b"mix")


class TestCompressFiles(FilesApiTestCase):
    def test_compress_many(self):
        resp = self.client.post(
            "/api/files/compress",
            json={"filePaths": ["audio-files/song.mp3", "images/cover.png"]},
        )
        self.assertEqual(resp.status_code, 200)
        body = resp.json()

        self.assertEqual(body["filesCompressed"], 2)
        self.assertEqual(body["originalSize"], len(self.audio) + len(self.image))
        self.assertTrue(body["zipFilePath"].startswith("compressed/"))
        self.assertEqual(body["zipFileUrl"], f"{BASE_URL}/api/files/{body['zipFilePath']}")
        self.assertTrue(body["compressionRatio"].endswith("%"))
        self.assertIn("message", body)

        zip_path = self.root / body["zipFilePath"]
        self.assertEqual(zip_path.stat().st_size, body["compressedSize"])
        with zipfile.ZipFile(zip_path) as zf:
            self.assertEqual(zf.namelist(), ["song.mp3", "cover.png"])
            self.assertEqual(zf.read("song.mp3"), self.audio)
            self.assertEqual(zf.read("cover.png"), self.image)

    def test_archive_is_downloadable_from_returned_path(self):
        body = self.client.post("/api/files/compress", json={"filePaths": ["audio-files/song.mp3"]}).json()

        resp = self.client.get(f"/api/files/{body['zipFilePath']}")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.headers["content-type"], "application/octet-stream")
        with zipfile.ZipFile(io.BytesIO(resp.content)) as zf:
            self.assertEqual(zf.read("song.mp3"), self.audio)

    def test_empty_or_missing_list_is_400(self):
        for payload in ({"filePaths": []}, {}):
            with self.subTest(payload=payload):
                resp = self.client.post("/api/files/compress", json=payload)
                self.assertEqual(resp.status_code, 400)
                self.assertIn("error", resp.json())

    def test_missing_file_is_404_and_no_archive(self):
        resp = self.client.post(
            "/api/files/compress",
            json={"filePaths": ["audio-files/song.mp3", "audio-files/gone.mp3"]},
        )
        self.assertEqual(resp.status_code, 404)
        self.assertIn("audio-files/gone.mp3", resp.json()["error"])
        self.assertFalse((self.root / "compressed").exists())

    def test_traversal_is_403(self):
        resp = self.client.post("/api/files/compress", json={"filePaths": ["../../etc/passwd"]})
        self.assertEqual(resp.status_code, 403)

    def test_duplicate_names_are_400(self):
        (self.root / "images" / "song.mp3").write_bytes(b"other")
        resp = self.client.post(
            "/api/files/compress",
            json={"filePaths": ["audio-files/song.mp3", "images/song.mp3"]},
        )
        self.assertEqual(resp.status_code, 400)

    def test_unexpected_failure_is_generic_500(self):
        client = TestClient(self.app, raise_server_exceptions=False)
        with patch(
            "src.backend.fs.archive_zip.ArchiveEngine._write_archive",
            side_effect=OSError(f"disk full at {self.root}"),
        ):
            resp = client.post("/api/files/compress", json={"filePaths": ["audio-files/song.mp3"]})

        self.assertEqual(resp.status_code, 500)
        self.assertNotIn(str(self.root), resp.text)
        self.assertIn("error", resp.json())


class TestCompressSingle(FilesApiTestCase):
    def test_compress_single(self):
        resp = self.client.post("/api/files/compress/single", json={"filePath": "audio-files/song.mp3"})
        self.assertEqual(resp.status_code, 200)
        body = resp.json()

        self.assertEqual(set(body), {"url", "ratio"})
        prefix = f"{BASE_URL}/api/files/compressed/song_"
        self.assertTrue(body["url"].startswith(prefix))
        self.assertTrue(body["ratio"].endswith("%"))

        zip_name = body["url"].rsplit("/", 1)[-1]
        with zipfile.ZipFile(self.root / "compressed" / zip_name) as zf:
            self.assertEqual(zf.read("song.mp3"), self.audio)

    def test_two_requests_give_distinct_archives(self):
        first = self.client.post("/api/files/compress/single", json={"filePath": "audio-files/song.mp3"}).json()
        second = self.client.post("/api/files/compress/single", json={"filePath": "audio-files/song.mp3"}).json()
        self.assertNotEqual(first["url"], second["url"])

    def _download(self, url: str) -> bytes:
        self.assertTrue(url.startswith(BASE_URL))
        resp = self.client.get(urlsplit(url).path)
        self.assertEqual(resp.status_code, 200)
        return resp.content

    def test_url_with_reserved_characters_downloads(self):
        for name in ("track#1.mp3", "two words?.mp3"):
            with self.subTest(name=name):
                (self.root / "audio-files" / name).write_bytes(self.audio)
                body = self.client.post("/api/files/compress/single", json={"filePath": f"audio-files/{name}"}).json()

                self.assertNotIn("#", body["url"])
                self.assertNotIn(" ", body["url"])
                with zipfile.ZipFile(io.BytesIO(self._download(body["url"]))) as zf:
                    self.assertEqual(zf.read(name), self.audio)

    def test_literal_percent_name_compresses_and_downloads(self):
        name = "mix%20final.mp3"
        (self.root / "audio-files" / name).write_bytes(self.audio)

        resp = self.client.post("/api/files/compress/single", json={"filePath": f"audio-files/{name}"})
        self.assertEqual(resp.status_code, 200)

        with zipfile.ZipFile(io.BytesIO(self._download(resp.json()["url"]))) as zf:
            self.assertEqual(zf.namelist(), [name])

    def test_missing_path_is_400(self):
        for payload in ({"filePath": ""}, {}):
            with self.subTest(payload=payload):
                resp = self.client.post("/api/files/compress/single", json=payload)
                self.assertEqual(resp.status_code, 400)

    def test_traversal_is_403(self):
        resp = self.client.post("/api/files/compress/single", json={"filePath": "../outside.mp3"})
        self.assertEqual(resp.status_code, 403)

    def test_missing_file_is_404(self):
        resp = self.client.post("/api/files/compress/single", json={"filePath": "audio-files/nope.mp3"})
        self.assertEqual(resp.status_code, 404)


if __name__ == "__main__":
    unittest.main()
