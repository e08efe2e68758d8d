from setuptools import find_packages, setup

setup(
    name="supabase-studio-infra",
    version="0.1.0",
    packages=find_packages(include=["studio_infra", "studio_infra.*"]),
    python_requires=">=3.9",
    install_requires=["pulumi>=3.0.0,<4.0.0", "pulumi-aws>=6.0.0", "PyYAML"],
    extras_require={
        "test": [
            "pytest",
            "pytest-mock",
            "pytest-cov",
        ]
    },
)
