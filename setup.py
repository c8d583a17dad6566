from setuptools import find_packages, setup

setup(
    name='fieldparam',
    version='0.0.1',
    author='Ruslan Guseinov',
    description='Seam-aware parameterization of triangle meshes from N-directional fields.',
    python_requires='>=3.8',
    install_requires=['numpy', 'scipy'],
    extras_require={'test': ['pytest']},
    classifiers=[
        'Programming Language :: Python :: 3',
        'License :: OSI Approved :: MIT License'
    ],
    package_dir={'': 'src'},
    packages=find_packages(where='src'),
)
