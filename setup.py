import os

from setuptools import setup, find_packages


def read(fname):
    path = os.path.join(os.path.dirname(__file__), fname)
    if not os.path.exists(path):
        return ''
    with open(path) as f:
        return f.read()


setup(
    name='django-dynamic-tables',
    version='0.2.0',
    description='Operator-defined comparison tables for catalog detail pages',
    long_description=read('README.rst'),
    license='MIT',
    classifiers=[
        'Framework :: Django',
        'Framework :: Django :: 4.2',
        'Programming Language :: Python :: 3',
    ],
    packages=find_packages(),
    package_data={
        'django_dynamic_tables': [
            'templates/django_dynamic_tables/*.html',
            'static/django_dynamic_tables/*',
        ],
    },
    python_requires='>=3.8',
    install_requires=[
        'django>=4.2',
        'djangorestframework>=3.14',
    ],
    extras_require={
        'test': [
            'pytest',
            'pytest-django',
        ],
    },
)
