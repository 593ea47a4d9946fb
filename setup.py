from setuptools import setup, find_packages

setup(
    name="cosmos-infomaniak",
    version="1.0.0",
    description="Image upload and Terraform automation for Cosmos Cloud on Infomaniak OpenStack",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "click>=8.0.0,<8.4",
        "rich>=13.0.0",
        "jinja2>=3.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "upload-image=cosmos_infomaniak.cli:main",
            "cosmos-infra=cosmos_infomaniak.infra_cli:main",
        ],
    },
    python_requires=">=3.9",
)
