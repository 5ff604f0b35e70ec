from setuptools import setup, find_namespace_packages

setup(
    name="rnaz-core",
    version="0.1.0",
    packages=find_namespace_packages(where="src", include=["rnaz", "rnaz.*"]),
    package_dir={"": "src"},
    python_requires=">=3.10",
    install_requires=[
        "numpy",
        "pyyaml",
    ],
    extras_require={
        "test": ["pytest"],
    },
    include_package_data=True,
)
