from setuptools import setup, find_packages

setup(
    name='releasecache',
    version='0.1.0',
    package_dir={'': 'src'},
    packages=find_packages(where='src'),
    python_requires='>=3.9',
    install_requires=[
        'requests',
        'pick>=2.0',
        'PyYAML',
        'urllib3',
        'platformdirs',
        'rich',
    ],
    extras_require={
        'test': [
            'pytest',
        ],
    },
    entry_points={
        'console_scripts': [
            'releasecache=releasecache.cli:main',
        ],
    },
)
