import pandas as pd
import pytest

from activity_quality.data_loader import DataLoader, load_tables
from activity_quality.errors import LoadError


def test_data_loader_sampling_is_deterministic(tmp_path):
    # Create a small CSV on the fly
    df = pd.DataFrame(
        {
            "row_id": list(range(1, 101)),
            "roll_belt": list(range(100)),
        }
    )
    csv_path = tmp_path / "toy.csv"
    df.to_csv(csv_path, index=False)

    s1 = DataLoader(path=str(csv_path), sample_size=10).load()
    s2 = DataLoader(path=str(csv_path), sample_size=10).load()

    assert len(s1) == 10
    pd.testing.assert_frame_equal(s1, s2)


def test_data_loader_preserves_row_order_and_numeric_types(tmp_path, sensor_frame):
    csv_path = tmp_path / "train.csv"
    sensor_frame.to_csv(csv_path, index=False)

    loaded = DataLoader(str(csv_path)).load()

    assert list(loaded.columns) == list(sensor_frame.columns)
    assert loaded["classe"].tolist() == sensor_frame["classe"].tolist()
    assert pd.api.types.is_float_dtype(loaded["roll_belt"])
    assert pd.api.types.is_integer_dtype(loaded["num_window"])


def test_data_loader_treats_div_by_zero_as_missing(tmp_path):
    csv_path = tmp_path / "train.csv"
    csv_path.write_text("a,kurtosis_yaw_belt,classe\n1,#DIV/0!,A\n2,,B\n3,0.5,C\n")

    loaded = DataLoader(str(csv_path)).load()

    assert loaded["kurtosis_yaw_belt"].isna().sum() == 2
    assert pd.api.types.is_float_dtype(loaded["kurtosis_yaw_belt"])


def test_data_loader_missing_file_raises_load_error(tmp_path):
    with pytest.raises(LoadError):
        DataLoader(str(tmp_path / "nope.csv")).load()


def test_data_loader_empty_file_raises_load_error(tmp_path):
    csv_path = tmp_path / "empty.csv"
    csv_path.write_text("")
    with pytest.raises(LoadError):
        DataLoader(str(csv_path)).load()


def test_data_loader_inconsistent_column_count_raises_load_error(tmp_path):
    csv_path = tmp_path / "bad.csv"
    csv_path.write_text("a,b,classe\n1,2,A\n3,4,B,extra,fields\n")
    with pytest.raises(LoadError):
        DataLoader(str(csv_path)).load()


def test_data_loader_short_row_raises_load_error(tmp_path):
    csv_path = tmp_path / "short.csv"
    csv_path.write_text("a,b,classe\n1,2,A\n3\n")
    with pytest.raises(LoadError, match="fewer fields"):
        DataLoader(str(csv_path)).load()


def test_data_loader_empty_fields_are_not_short_rows(tmp_path):
    csv_path = tmp_path / "gaps.csv"
    csv_path.write_text("a,b,classe\n1,,A\n,#DIV/0!,B\n")

    loaded = DataLoader(str(csv_path)).load()

    assert loaded.shape == (2, 3)
    assert loaded[["a", "b"]].isna().sum().sum() == 3


def test_data_loader_downloads_once_and_caches(tmp_path, sensor_frame):
    source = tmp_path / "remote.csv"
    sensor_frame.to_csv(source, index=False)
    cache = tmp_path / "cache" / "train.csv"

    loader = DataLoader(str(cache), url=str(source))
    first = loader.load()
    assert cache.exists()

    source.unlink()
    second = loader.load()
    pd.testing.assert_frame_equal(first, second)


def test_load_tables_checks_headers(tmp_path, sensor_frame, scoring_frame):
    train_path = tmp_path / "train.csv"
    scoring_path = tmp_path / "scoring.csv"
    sensor_frame.to_csv(train_path, index=False)
    scoring_frame.to_csv(scoring_path, index=False)

    train, scoring = load_tables(
        DataLoader(str(train_path)),
        DataLoader(str(scoring_path)),
        label_col="classe",
        scoring_id_col="problem_id",
    )
    assert train.shape == sensor_frame.shape
    assert scoring.shape == scoring_frame.shape

    scoring_frame.drop(columns=["pitch_belt"]).to_csv(scoring_path, index=False)
    with pytest.raises(LoadError, match="headers differ"):
        load_tables(
            DataLoader(str(train_path)),
            DataLoader(str(scoring_path)),
            label_col="classe",
            scoring_id_col="problem_id",
        )


def test_load_tables_requires_label_in_training(tmp_path, sensor_frame, scoring_frame):
    train_path = tmp_path / "train.csv"
    scoring_path = tmp_path / "scoring.csv"
    sensor_frame.drop(columns=["classe"]).to_csv(train_path, index=False)
    scoring_frame.to_csv(scoring_path, index=False)

    with pytest.raises(LoadError, match="label"):
        load_tables(
            DataLoader(str(train_path)),
            DataLoader(str(scoring_path)),
            label_col="classe",
            scoring_id_col="problem_id",
        )


def test_load_tables_rejects_label_in_scoring(tmp_path, sensor_frame, scoring_frame):
    train_path = tmp_path / "train.csv"
    scoring_path = tmp_path / "scoring.csv"
    sensor_frame.to_csv(train_path, index=False)
    scoring_frame.assign(classe="A").to_csv(scoring_path, index=False)

    with pytest.raises(LoadError, match="must not carry"):
        load_tables(
            DataLoader(str(train_path)),
            DataLoader(str(scoring_path)),
            label_col="classe",
            scoring_id_col="problem_id",
        )
