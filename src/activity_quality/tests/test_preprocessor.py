import numpy as np
import pandas as pd

from activity_quality.preprocessor import Preprocessor


def _make_small_X():
    return pd.DataFrame(
        {
            # numeric sensor readings
            "roll_belt": [1.41, 8.07, np.nan, 120.0],
            "accel_arm_x": [-288.0, -290.0, -289.0, np.nan],
            "num_window": [11, 12, 12, 13],

            # categorical
            "new_window": ["no", "yes", np.nan, "no"],
        }
    )


def test_preprocessor_build_returns_column_transformer():
    X = _make_small_X()
    transformer = Preprocessor().build(X)
    names = [name for name, _, _ in transformer.transformers]
    assert names == ["num", "cat"]


def test_preprocessor_fit_transform_preserves_row_count_and_no_nans():
    X = _make_small_X()
    Xt = Preprocessor(scale=True).build(X).fit_transform(X)

    assert Xt.shape[0] == X.shape[0]
    assert np.isfinite(Xt).all()


def test_preprocessor_transform_handles_unseen_categories():
    X_train = pd.DataFrame({"roll_belt": [1.0, 2.0], "new_window": ["no", "yes"]})
    X_test = pd.DataFrame({"roll_belt": [1.5], "new_window": ["maybe"]})

    transformer = Preprocessor().build(X_train)
    transformer.fit(X_train)

    Xt_test = transformer.transform(X_test)
    assert Xt_test.shape == (1, 3)


def test_preprocessor_scales_only_when_requested():
    X = pd.DataFrame({"roll_belt": [1.0, 2.0, 3.0, 4.0], "yaw_belt": [10.0, 20.0, 30.0, 40.0]})

    unscaled = Preprocessor(scale=False).build(X).fit_transform(X)
    np.testing.assert_allclose(unscaled, X.to_numpy())

    scaled = Preprocessor(scale=True).build(X).fit_transform(X)
    np.testing.assert_allclose(scaled.mean(axis=0), 0.0, atol=1e-12)
    np.testing.assert_allclose(scaled.std(axis=0), 1.0)

    num_pipe = Preprocessor(scale=True).build(X).transformers[0][1]
    assert "scaler" in num_pipe.named_steps
