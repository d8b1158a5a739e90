[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "workloadkit"
version = "0.1.0"
description = "Build and manage Kubernetes deployments, jobs, stateful sets and services for component workload types"
requires-python = ">=3.10"
dependencies = []
keywords = ["kubernetes", "workload", "deployment", "statefulset", "job", "service", "configmap"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Clustering",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["workloadkit"]

[tool.pytest.ini_options]
addopts = "-ra"
