#!/usr/bin/env python

from setuptools import setup, find_packages

def readme():
    with open('README.md') as f:
        return f.read()

setup(name='quantile_mean',
      version='0.1.0',
      description='Estimating a mean using a known quantile and censoring '
                  'information',
      long_description=readme(),
      long_description_content_type='text/markdown',
      packages=find_packages(include=['quantile_mean', 'quantile_mean.*']),
      license='MIT',
      classifiers=[
          'Development Status :: 2 - Pre-Alpha',
          'Intended Audience :: Science/Research',
          'License :: OSI Approved :: MIT License',
          'Topic :: Scientific/Engineering :: Mathematics'
      ],
      keywords='statistics estimation censoring kaplan-meier monte-carlo',
      python_requires='>=3.8',
      install_requires=['numpy', 'scipy', 'pandas', 'matplotlib', 'seaborn'],
      extras_require={'test': ['pytest', 'lifelines']},
)
