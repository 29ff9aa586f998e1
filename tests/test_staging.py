import os

import pytest

from videoscribe import staging
from videoscribe.errors import CleanupError


def test_build_artifact_paths(tmp_path):
    paths = staging.build_artifact_paths('u1', 'videos/u1/a.mp4', tmp_dir=str(tmp_path), now_ms=1700)
    assert paths.prefix == '1700_u1'
    assert paths.local_video_path == os.path.join(str(tmp_path), '1700_u1_a.mp4')
    assert paths.local_audio_path == os.path.join(str(tmp_path), '1700_u1_a.wav')
    assert paths.audio_storage_path == 'extracted_audio/u1/1700_u1_a.wav'


def test_build_artifact_paths_without_extension(tmp_path):
    paths = staging.build_artifact_paths('u1', 'videos/u1/clip', tmp_dir=str(tmp_path), now_ms=1)
    assert paths.local_audio_path.endswith('1_u1_clip.wav')


def test_build_artifact_paths_defaults_to_now():
    paths = staging.build_artifact_paths('u1', 'videos/u1/a.mov')
    millis, owner = paths.prefix.split('_', 1)
    assert millis.isdigit()
    assert owner == 'u1'


def test_release_local_is_idempotent(tmp_path):
    paths = staging.build_artifact_paths('u1', 'videos/u1/a.mp4', tmp_dir=str(tmp_path), now_ms=1)
    open(paths.local_video_path, 'wb').close()
    open(paths.local_audio_path, 'wb').close()
    staging.release_local(paths)
    assert not os.path.exists(paths.local_video_path)
    assert not os.path.exists(paths.local_audio_path)
    staging.release_local(paths)


def test_release_local_logs_delete_errors(tmp_path, monkeypatch, caplog):
    paths = staging.build_artifact_paths('u1', 'videos/u1/a.mp4', tmp_dir=str(tmp_path), now_ms=1)
    open(paths.local_video_path, 'wb').close()
    open(paths.local_audio_path, 'wb').close()
    real_remove = os.remove

    def flaky_remove(path):
        if path == paths.local_video_path:
            raise PermissionError('denied')
        real_remove(path)

    monkeypatch.setattr(staging.os, 'remove', flaky_remove)
    staging.release_local(paths)
    assert os.path.exists(paths.local_video_path)
    assert not os.path.exists(paths.local_audio_path)
    assert 'denied' in caplog.text


def test_delete_staged_audio_wraps_errors():
    class Blob:
        name = 'extracted_audio/u1/x.wav'

        def delete(self):
            raise RuntimeError('gone')

    with pytest.raises(CleanupError, match='gone'):
        staging.delete_staged_audio(Blob())
