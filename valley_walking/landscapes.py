"""
Demonstration landscapes with known critical structure.

Written with indexing and arithmetic only, so they evaluate on numpy arrays
and on torch tensors alike.

| name          | f(x)                          | critical structure                   |
|---------------|-------------------------------|--------------------------------------|
| circle        | (x1² + x2² - 1)²              | unit circle valley, f_min = 0        |
| offset_circle | (x1² + x2² - 1)² + 0.01       | unit circle valley, f_min = 0.01     |
| circle_3d     | (x1² + x2² - 1)² + x3²        | unit circle in the x3 = 0 plane      |
| quadratic     | x1² + x2²                     | isolated minimum at the origin       |
| saddle        | x1² - x2²                     | isolated saddle at the origin        |
"""


def circle_valley(x):
    return (x[0] ** 2 + x[1] ** 2 - 1) ** 2


def offset_circle_valley(x):
    return (x[0] ** 2 + x[1] ** 2 - 1) ** 2 + 0.01


def circle_valley_3d(x):
    return (x[0] ** 2 + x[1] ** 2 - 1) ** 2 + x[2] ** 2


def isolated_minimum(x):
    return x[0] ** 2 + x[1] ** 2


def saddle(x):
    return x[0] ** 2 - x[1] ** 2


# name -> (objective, dimension, a point on its valley or its critical point)
LANDSCAPES = {
    "circle": (circle_valley, 2, (1.0, 0.0)),
    "offset_circle": (offset_circle_valley, 2, (1.0, 0.0)),
    "circle_3d": (circle_valley_3d, 3, (1.0, 0.0, 0.0)),
    "quadratic": (isolated_minimum, 2, (0.0, 0.0)),
    "saddle": (saddle, 2, (0.0, 0.0)),
}
