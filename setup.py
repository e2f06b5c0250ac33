import re

from setuptools import setup

with open("psbtutils/__init__.py") as init_file:
    __version__ = re.search(r'^__version__ = "([^"]+)"', init_file.read(), re.M).group(1)

with open("README.rst") as readme:
    long_description = readme.read()

setup(
    name="psbt-utils",
    version=__version__,
    description="Analyze, combine, edit and finalize Partially Signed Bitcoin Transactions",
    long_description=long_description,
    license="MIT",
    keywords="bitcoin psbt bip174 bip371 library utilities tools",
    python_requires=">=3.9",
    install_requires=[
        "base58check>=1.0.2,<2.0",
        "bip_utils>=2.7,<3.0",
        "python-bitcoinrpc>=1.0,<2.0",
        "requests>=2.25,<3.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    packages=["psbtutils"],
    py_modules=["psbt_utils_cli"],
    entry_points={
        "console_scripts": ["psbt-utils=psbt_utils_cli:main"],
    },
    zip_safe=False,
)
