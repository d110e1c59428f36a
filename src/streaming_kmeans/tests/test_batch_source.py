import numpy as np
import pytest

from streaming_kmeans.src.errors import DimensionMismatchError
from streaming_kmeans.src.services.batch_source import DirectoryBatchSource


def test_poll_returns_none_without_files(tmp_path):
    source = DirectoryBatchSource(str(tmp_path), d=2)

    assert source.poll() is None
    assert source.batch_id == 0


def test_new_files_form_one_batch(tmp_path):
    # Arrange
    (tmp_path / "a.txt").write_text("1 2\n3 4\n")
    (tmp_path / "b.txt").write_text("5\t6\n")
    source = DirectoryBatchSource(str(tmp_path), d=2)

    # Act
    batch = source.poll()

    # Assert
    assert batch.tolist() == [[1.0, 2.0], [3.0, 4.0], [5.0, 6.0]]
    assert source.batch_id == 1


def test_files_are_consumed_once(tmp_path):
    (tmp_path / "a.txt").write_text("1 2\n")
    source = DirectoryBatchSource(str(tmp_path), d=2)
    source.poll()

    (tmp_path / "b.txt").write_text("7 8\n")
    batch = source.poll()

    assert batch.tolist() == [[7.0, 8.0]]
    assert source.poll() is None


def test_empty_file_gives_empty_batch(tmp_path):
    (tmp_path / "empty.txt").write_text("")
    source = DirectoryBatchSource(str(tmp_path), d=3)

    batch = source.poll()

    assert batch.shape == (0, 3)


def test_wrong_width_raises_dimension_mismatch(tmp_path):
    (tmp_path / "bad.txt").write_text("1 2 3\n4 5 6\n")
    source = DirectoryBatchSource(str(tmp_path), d=2)

    with pytest.raises(DimensionMismatchError):
        source.poll()


def test_iter_batches_drops_malformed_batches(tmp_path, caplog_loguru):
    # Arrange
    (tmp_path / "bad.txt").write_text("1 2 3\n")
    source = DirectoryBatchSource(str(tmp_path), d=2)

    # Act
    batches = list(source.iter_batches(interval_seconds=0.0, max_batches=2))

    # Assert
    assert len(batches) == 1
    assert batches[0].shape == (0, 2)
    assert any(extra.get("event") == "batch_rejected" for _, _, extra in caplog_loguru)


def test_iter_batches_yields_empty_batch_for_idle_interval(tmp_path):
    (tmp_path / "a.txt").write_text("0.5 0.5\n")
    source = DirectoryBatchSource(str(tmp_path), d=2)

    batches = list(source.iter_batches(interval_seconds=0.0, max_batches=2))

    assert [b.shape for b in batches] == [(1, 2), (0, 2)]
    assert np.array_equal(batches[0], [[0.5, 0.5]])


def test_missing_directory_raises(tmp_path):
    source = DirectoryBatchSource(str(tmp_path / "missing"), d=2)

    with pytest.raises(FileNotFoundError):
        source.poll()


def test_reset_forgets_consumed_files(tmp_path):
    (tmp_path / "a.txt").write_text("1 2\n")
    source = DirectoryBatchSource(str(tmp_path), d=2)
    source.poll()

    source.reset()

    assert source.poll().tolist() == [[1.0, 2.0]]
