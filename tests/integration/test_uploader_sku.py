from __future__ import annotations

import unittest
from dataclasses import replace
from types import SimpleNamespace
from unittest.mock import Mock, patch

from spinworks.common.paths import sku_output_dir
from spinworks.workers import uploader

from tests._helpers import temp_env


def _render(env, sku, names):
    d = sku_output_dir(env, sku)
    d.mkdir(parents=True, exist_ok=True)
    for n in names:
        (d / n).write_bytes(b"mp4")
    return d


class TestUploadSkuToYouTube(unittest.TestCase):
    def test_missing_output_dir_raises(self) -> None:
        with temp_env() as (_, env):
            with self.assertRaises(RuntimeError):
                uploader.upload_sku_to_youtube(env, "NOPE")

    def test_no_videos_is_empty_summary(self) -> None:
        with temp_env() as (_, env):
            _render(env, "SKU1", ["notes.txt"])
            summary = uploader.upload_sku_to_youtube(env, "SKU1")
            self.assertEqual(summary.video_ids, [])
            self.assertEqual(summary.playlist_id, "")

    def test_mock_backend(self) -> None:
        with temp_env() as (_, env):
            _render(env, "SKU1", ["B1.mp4", "A1.mp4"])
            summary = uploader.upload_sku_to_youtube(env, "SKU1")
            self.assertEqual(summary.playlist_id, "mock-playlist-SKU1")
            self.assertEqual(summary.video_ids, ["mock-A1", "mock-B1"])

    def test_failed_upload_does_not_stop_the_rest(self) -> None:
        with temp_env() as (_, env0):
            env = replace(env0, upload_backend="youtube", yt_privacy_status="public")
            _render(env, "SKU1", ["A1.mp4", "A2.mp4", "B1.mp4"])

            def upload_video(*, video_path, **kw):
                if video_path.name == "A2.mp4":
                    raise RuntimeError("quota exceeded")
                return SimpleNamespace(video_id=f"id-{video_path.stem}", url="u")

            client = SimpleNamespace(
                ensure_playlist=Mock(return_value="PL1"),
                upload_video=Mock(side_effect=upload_video),
                add_to_playlist=Mock(side_effect=[None, RuntimeError("playlist gone")]),
            )
            summary = uploader.upload_sku_to_youtube(env, "SKU1", client=client)  # type: ignore[arg-type]

            client.ensure_playlist.assert_called_once_with("SKU1")
            self.assertEqual(summary.video_ids, ["id-A1", "id-B1"])
            self.assertEqual(summary.failed, ["A2.mp4"])
            self.assertEqual(client.add_to_playlist.call_count, 2)
            self.assertEqual(client.upload_video.call_args.kwargs["privacy_status"], "public")


class TestPackageAndUpload(unittest.TestCase):
    def test_zip_is_removed_after_upload(self) -> None:
        with temp_env() as (_, env):
            d = _render(env, "SKU1", ["A1.mp4"])
            with patch.object(uploader.spaces, "upload_to_spaces", Mock(return_value="s3://b/mp4/SKU1.zip")) as up:
                url = uploader.package_and_upload_sku(env, "SKU1")
            self.assertEqual(url, "s3://b/mp4/SKU1.zip")
            self.assertEqual(up.call_args.args[0].name, "SKU1.zip")
            self.assertFalse((d / "SKU1.zip").exists())

    def test_zip_is_removed_when_upload_fails(self) -> None:
        with temp_env() as (_, env):
            d = _render(env, "SKU1", ["A1.mp4"])
            with patch.object(uploader.spaces, "upload_to_spaces", Mock(side_effect=RuntimeError("denied"))):
                with self.assertRaises(RuntimeError):
                    uploader.package_and_upload_sku(env, "SKU1")
            self.assertFalse((d / "SKU1.zip").exists())
            self.assertTrue((d / "A1.mp4").exists())

    def test_nothing_to_package_raises(self) -> None:
        with temp_env() as (_, env):
            with self.assertRaises(RuntimeError):
                uploader.package_and_upload_sku(env, "SKU1")


if __name__ == "__main__":
    unittest.main()
