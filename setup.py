#!/usr/bin/env python3
# coding=utf-8

"""
    python distribute file
"""

from setuptools import setup, find_packages


def requirements_file_to_list(fn='requirements.txt'):
    """
        read a requirements file and create a list that can be used in setup.
    """
    with open(fn, 'r') as f:
        return [x.strip() for x in list(f) if x.strip() and not x.startswith('#')]


setup(
    name='osrouting_controller',
    version='0.1.0',
    packages=find_packages('src', exclude=['tests']),
    package_dir={'': 'src'},
    install_requires=requirements_file_to_list(),
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'osrouting_controller = osrouting:start_controller',
        ]
    },
    test_suite="tests",
    description='L3 routing and PNAT for Openstack tenant networks on OpenFlow switches',
    long_description=open('README.md').read(),
    keywords='SDN OpenFlow Openstack Routing NAT',
    license='GPLv3',
    classifiers=[
        'Development Status :: 3 - Alpha',
        'License :: OSI Approved :: GNU General Public License v3 (GPLv3)',
        'Programming Language :: Python :: 3',
    ]
)
