from setuptools import setup, find_packages

setup(
    name="nhm_confinement",
    version="0.1.0",
    description="Channel confinement estimates for NHDPlusv2 reaches and NHM segments",
    author="RPA",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.8",
    install_requires=[
        "pandas>=2.0.0",
        "pyarrow>=14.0.1",  # For parquet support
        "numpy>=1.24.0",    # For numerical operations
        "pyyaml>=6.0.0",    # For YAML configuration files
        "scipy>=1.10.0",    # For sparse distance matrices
        "geopandas>=0.14.0", # For FACET / catchment spatial joins
        "shapely>=2.0.0",
        "tqdm>=4.65.0",     # Progress bars for gap filling
    ],
    extras_require={
        'dev': [
            'pytest>=7.0.0',
            'black>=23.0.0',
            'flake8>=6.0.0',
            'mypy>=1.0.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'nhm-confinement=nhm_confinement.cli:main',
        ],
    },
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Science/Research',
        'Topic :: Scientific/Engineering :: Hydrology',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
    ],
)
