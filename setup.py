from setuptools import setup, find_packages


setup(
    name="utilkit",
    version="0.1",
    packages=find_packages(include=["utilkit", "utilkit.*"]),
    description="Helpers for password-based message encryption, bounded parallel processing and everyday formatting.",
    author="vercingetorx",
    python_requires=">=3.9",
    install_requires=[
        "pycryptodomex>=3.23.0",
    ],
    entry_points={
        "console_scripts": [
            "utilkit=utilkit.cli:main",
        ]
    },
)
