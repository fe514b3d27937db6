[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "womens_shop"
version = "0.1.0"
description = "JSON REST backend for a small clothing shop: users, products, carts, orders, payments and promocodes."
requires-python = ">=3.10"
keywords = ["shop", "e-commerce", "rest", "api", "flask", "sqlalchemy", "crud"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Framework :: Flask",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
]
dependencies = [
    "flask",
    "sqlalchemy",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
womens-shop = "womens_shop.routes:main"

[tool.hatch.build.targets.wheel]
packages = ["womens_shop"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
