import logging
from time import perf_counter

from sklearn.datasets import load_diabetes, load_iris

from cartpy import CartClassifier, CartRegressor

logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

iris = load_iris()
clf = CartClassifier(criterion="gini", maximum_tree_size=15,
                     feature_names=list(iris.feature_names))
t0 = perf_counter(); clf.fit(iris.data, iris.target); print(f"fit: {perf_counter()-t0:.3f} s")
print(f"train accuracy: {clf.score(iris.data, iris.target):.3f}")
clf.print_tree()
for rule in clf.export_rules():
    print(rule)

diabetes = load_diabetes()
reg = CartRegressor(minimum_split_size=20, maximum_tree_size=63,
                    feature_names=list(diabetes.feature_names))
reg.fit(diabetes.data, diabetes.target)
print(f"train R^2: {reg.score(diabetes.data, diabetes.target):.3f}")
print(dict(zip(diabetes.feature_names, reg.feature_importances_.round(3))))
try:
    reg.export_graphviz("diabetes_tree", format="dot")
except RuntimeError as e:
    print(f"Skipping Graphviz export: {e}")
