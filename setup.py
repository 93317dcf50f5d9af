from setuptools import find_packages, setup
import os
from glob import glob

package_name = 'scan_features'

setup(
    name='scan-features',
    version='1.0.0',
    packages=find_packages(exclude=['test']),
    data_files=[
        # Include config files
        (os.path.join('share', package_name, 'config'), glob('config/*.yaml')),
    ],
    install_requires=['setuptools', 'numpy', 'PyYAML'],
    extras_require={
        'test': ['pytest'],
    },
    python_requires='>=3.8',
    zip_safe=True,
    description='Line segment and circle extraction from 2D range sensor points',
    license='MIT',
    entry_points={
        'console_scripts': [
            'scan-features = scan_features.cli:main',
        ],
    },
)
