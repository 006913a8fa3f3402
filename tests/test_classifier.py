import numpy as np
import pytest
from sklearn.base import clone
from sklearn.datasets import load_iris

from cartpy import CartClassifier


def _tiny_dataset():
    """Return a small classification dataset with two numeric features."""
    X = np.array([[1.0, 0.3], [2.0, 0.1], [3.0, 0.4], [4.0, 0.2]])
    y = np.array(["no", "no", "yes", "yes"])
    return X, y


def test_classifier_proba_sums_to_one():
    X, y = _tiny_dataset()
    clf = CartClassifier(feature_names=["num", "noise"]).fit(X, y)
    proba = clf.predict_proba(X)
    assert proba.shape == (4, 2)
    assert np.allclose(proba.sum(axis=1), 1.0)
    assert list(clf.predict(X)) == list(y)
    assert list(clf.classes_) == ["no", "yes"]


def test_classifier_iris_training_accuracy():
    X, y = load_iris(return_X_y=True)
    clf = CartClassifier(criterion="entropy").fit(X, y)
    assert clf.score(X, y) > 0.95
    assert clf.tree_.node_count <= clf.maximum_tree_size
    assert clf.feature_importances_.sum() == pytest.approx(1.0)


def test_classifier_feature_importances_ignore_noise():
    X, y = _tiny_dataset()
    X = np.column_stack([X[:, 0], np.zeros(4)])
    clf = CartClassifier().fit(X, y)
    assert np.allclose(clf.feature_importances_, [1.0, 0.0])


def test_classifier_sample_weights_shift_leaf():
    X = np.array([[1.0], [1.0], [2.0]])
    y = np.array([0, 1, 1])
    clf = CartClassifier().fit(X, y, sample_weight=[3.0, 1.0, 1.0])
    assert np.allclose(clf.predict_proba([[1.0]])[0], [0.75, 0.25])
    assert clf.predict([[1.0]])[0] == 0
    assert clf.predict([[2.0]])[0] == 1
    with pytest.raises(ValueError):
        clf.fit(X, y, sample_weight=[1.0, 1.0])


def test_classifier_maximum_tree_size_one_is_a_stump():
    X, y = _tiny_dataset()
    clf = CartClassifier(maximum_tree_size=1).fit(X, y)
    assert clf.tree_.node_count == 1
    assert np.allclose(clf.predict_proba(X), 0.5)


def test_classifier_rule_export():
    X, y = _tiny_dataset()
    clf = CartClassifier().fit(X, y)
    rules = clf.predict_rule(X, feature_names=["num", "noise"])
    assert len(rules) == len(X)
    assert rules[0].startswith("num <=")
    tree_rules = clf.export_rules(feature_names=["num", "noise"])
    assert len(tree_rules) == clf.tree_.leaf_count
    assert all("=>" in r for r in tree_rules)


def test_classifier_print_tree(capsys):
    X, y = _tiny_dataset()
    CartClassifier().fit(X, y).print_tree(feature_names=["num", "noise"])
    out = capsys.readouterr().out
    assert "if num <= 2.5:" in out
    assert "else:" in out
    assert "class=yes" in out


def test_classifier_graphviz_export(tmp_path):
    pytest.importorskip("graphviz")
    X, y = _tiny_dataset()
    clf = CartClassifier().fit(X, y)
    assert "digraph" in clf.export_graphviz()
    out_path = clf.export_graphviz(str(tmp_path / "tree"), format="dot")
    assert out_path.endswith(".dot")
    assert (tmp_path / "tree.dot").exists()


def test_classifier_not_fitted_raises():
    clf = CartClassifier()
    with pytest.raises(ValueError):
        clf.predict([[1.0, 2.0]])
    with pytest.raises(ValueError):
        clf.export_rules()
    with pytest.raises(ValueError):
        clf.feature_importances_


def test_classifier_invalid_hyperparameters():
    X, y = _tiny_dataset()
    with pytest.raises(ValueError):
        CartClassifier(criterion="twoing").fit(X, y)
    with pytest.raises(ValueError):
        CartClassifier(minimum_information_gain=0.0).fit(X, y)
    with pytest.raises(ValueError):
        CartClassifier(minimum_split_size=0).fit(X, y)


def test_classifier_wrong_feature_count_on_predict():
    X, y = _tiny_dataset()
    clf = CartClassifier().fit(X, y)
    with pytest.raises(ValueError):
        clf.predict([[1.0]])


def test_classifier_clone_keeps_params():
    clf = CartClassifier(criterion="entropy", n_candidate_features=1, random_state=0)
    params = clone(clf).get_params()
    assert params["criterion"] == "entropy"
    assert params["n_candidate_features"] == 1


def test_base_hooks_must_be_overridden():
    from cartpy.tree import _BaseCart

    base = _BaseCart()
    with pytest.raises(NotImplementedError):
        base._impurity_metric()
    with pytest.raises(NotImplementedError):
        base._leaf_factory()
    with pytest.raises(NotImplementedError):
        base._describe_leaf(None)
