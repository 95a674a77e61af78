from setuptools import setup, find_packages

setup(
    name='reco_validation_framework',
    version='0.1',
    packages=find_packages(exclude=['tests', 'tests.*']),
    install_requires=[
        'uproot',
        'numpy',
        'hist',
        'boost-histogram',
        'awkward',
        'matplotlib',
        'mplhep'
    ],
    extras_require={
        'test': ['pytest'],
    },
    description='Heavy-ion jet response validation and diamond timing reconstruction',
)
