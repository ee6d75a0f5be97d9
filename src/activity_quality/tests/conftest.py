import numpy as np
import pandas as pd
import pytest

LABELS = ["A", "B", "C", "D", "E"]


def make_sensor_frame(n_per_class: int = 40, seed: int = 0) -> pd.DataFrame:
    """Small stand-in for the weight lifting training table.

    roll_belt separates the classes perfectly; new_window is constant and
    kurtosis_roll_belt is almost entirely missing.
    """
    rng = np.random.RandomState(seed)
    n = n_per_class * len(LABELS)
    labels = np.repeat(LABELS, n_per_class)
    class_idx = np.repeat(np.arange(len(LABELS)), n_per_class)

    kurtosis = np.full(n, np.nan)
    kurtosis[:3] = [0.5, -1.2, 0.8]

    df = pd.DataFrame(
        {
            "Unnamed: 0": np.arange(1, n + 1),
            "user_name": rng.choice(["adelmo", "carlitos", "pedro"], size=n),
            "raw_timestamp_part_1": 1322489729 + np.arange(n),
            "raw_timestamp_part_2": rng.randint(0, 999999, size=n),
            "cvtd_timestamp": "28/11/2011 14:15",
            "new_window": "no",
            "num_window": rng.randint(1, 800, size=n),
            "roll_belt": class_idx * 10.0 + rng.uniform(0, 1, size=n),
            "pitch_belt": rng.normal(0, 5, size=n),
            "accel_arm_x": rng.normal(-50, 20, size=n),
            "kurtosis_roll_belt": kurtosis,
            "classe": labels,
        }
    )
    return df.iloc[rng.permutation(n)].reset_index(drop=True)


def make_scoring_frame(train: pd.DataFrame, n: int = 20, seed: int = 1) -> pd.DataFrame:
    rng = np.random.RandomState(seed)
    scoring = train.drop(columns=["classe"]).sample(n, random_state=seed).reset_index(drop=True)
    scoring["Unnamed: 0"] = np.arange(1, n + 1)
    scoring["pitch_belt"] = rng.normal(0, 5, size=n)
    scoring["problem_id"] = np.arange(1, n + 1)
    return scoring


@pytest.fixture
def sensor_frame() -> pd.DataFrame:
    return make_sensor_frame()


@pytest.fixture
def scoring_frame(sensor_frame: pd.DataFrame) -> pd.DataFrame:
    return make_scoring_frame(sensor_frame)


@pytest.fixture
def separable_frame() -> pd.DataFrame:
    """Three classes separable by thresholds on two features."""
    rng = np.random.RandomState(7)
    n_per_class = 60
    frames = []
    for idx, label in enumerate(["low", "mid", "high"]):
        frames.append(
            pd.DataFrame(
                {
                    "x1": idx * 10.0 + rng.uniform(0, 5, size=n_per_class),
                    "x2": rng.uniform(0, 5, size=n_per_class),
                    "label": label,
                }
            )
        )
    df = pd.concat(frames, ignore_index=True)
    return df.iloc[rng.permutation(len(df))].reset_index(drop=True)
