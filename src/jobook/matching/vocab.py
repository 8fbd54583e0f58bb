"""Keyword tables used by signal extraction and smart search.

Every table is an immutable tuple built once at import. Matching against them is
literal substring matching on lower-cased text: 'node', 'nodejs' and 'node.js'
are three distinct entries and are never merged.
"""
import re
from typing import Tuple

VOCAB_VERSION = '2024.1'

ROLE_TOKENS: Tuple[str, ...] = (
    'backend', 'front-end', 'frontend', 'fullstack', 'full-stack', 'web', 'web developer',
    'software engineer', 'mobile', 'ios', 'android', 'devops', 'qa', 'tester', 'data', 'ml',
    'ai', 'dl', 'embedded', 'firmware', 'security', 'sre', 'site reliability', 'game', 'unity',
    'unreal', 'blockchain', 'web3',
)

TECH_TOKENS: Tuple[str, ...] = (
    # languages
    'javascript', 'typescript', 'python', 'java', 'c#', 'csharp', 'c++', 'cpp', 'php', 'go',
    'golang', 'ruby', 'kotlin', 'swift', 'rust', 'scala', 'dart',
    # frameworks / platforms
    'react', 'angular', 'vue', 'svelte', 'nextjs', 'next.js', 'nuxt', 'nuxtjs', 'nestjs',
    'nest.js', 'node', 'nodejs', 'express', 'spring', 'spring boot', '.net', 'dotnet',
    'asp.net', 'django', 'flask', 'fastapi', 'laravel', 'symfony', 'rails', 'ruby on rails',
    'quarkus', 'micronaut',
    # devops / cloud / db
    'docker', 'kubernetes', 'k8s', 'aws', 'azure', 'gcp', 'firebase', 'vercel', 'cloudflare',
    'linux', 'git', 'jira',
    'mysql', 'postgres', 'postgresql', 'mariadb', 'sqlite', 'oracle', 'sqlserver', 'mongodb',
    'redis', 'elasticsearch', 'kafka', 'rabbitmq',
    # apis
    'rest', 'graphql', 'grpc',
)


def normalize_symbols(text: str) -> str:
    """Rewrite symbol-bearing language names so they match as plain tokens."""
    return text.replace('c++', 'cpp').replace('c#', 'csharp')


# Tech needles after symbol normalization, first occurrence order kept.
TECH_NEEDLES: Tuple[str, ...] = tuple(dict.fromkeys(normalize_symbols(t.lower()) for t in TECH_TOKENS))

DEGREE_LEVELS: Tuple[Tuple[int, re.Pattern], ...] = (
    (3, re.compile(r'phd|tiến\s*sĩ|doctorate', re.I)),
    (2, re.compile(r'master|thạc\s*sĩ|msc', re.I)),
    (1, re.compile(r'bachelor|cử\s*nhân|đại\s*học|kỹ\s*sư|engineer|bsc', re.I)),
)

ENGLISH_WORD_LEVELS: Tuple[Tuple[int, re.Pattern], ...] = (
    (4, re.compile(r'fluent|native|professional|proficient', re.I)),
    (3, re.compile(r'advanced|upper[-\s]?intermediate', re.I)),
    (2, re.compile(r'intermediate|good', re.I)),
    (1, re.compile(r'basic|elementary', re.I)),
)

# (minimum band, level), checked top-down
IELTS_BANDS: Tuple[Tuple[float, int], ...] = ((7.5, 4), (6.5, 3), (5.0, 2))
TOEIC_BANDS: Tuple[Tuple[int, int], ...] = ((850, 4), (700, 3), (450, 2))

ENGLISH_REQUIREMENT_RE = re.compile(r'english|tiếng\s*anh|ielts|toeic')

ROLE_FAMILIES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ('web', ('web', 'frontend', 'front-end', 'backend', 'fullstack', 'full-stack', 'react',
             'angular', 'vue', 'nextjs', 'next.js', 'node', 'nodejs', 'express', '.net',
             'asp.net', 'spring', 'django', 'laravel')),
    ('embedded', ('embedded', 'firmware', 'rtos', 'mcu', 'stm32', 'nrf52', 'freertos', 'bare metal')),
    ('mobile', ('mobile', 'ios', 'android', 'swift', 'kotlin', 'react native', 'flutter')),
    ('data-ai', ('data', 'ml', 'machine learning', 'ai', 'deep learning', 'dl', 'pytorch', 'tensorflow')),
    ('devops', ('devops', 'sre', 'site reliability', 'kubernetes', 'k8s', 'ci/cd')),
    ('security', ('security', 'pentest', 'appsec', 'infosec')),
    ('qa', ('qa', 'tester', 'testing', 'automation test')),
    ('game', ('game', 'unity', 'unreal')),
    ('blockchain', ('blockchain', 'web3', 'solidity')),
)

DEGREE_HIGHLIGHT_TERMS: Tuple[str, ...] = (
    'đại học', 'cử nhân', 'kỹ sư', 'bachelor', 'bsc', 'thạc sĩ', 'master', 'msc', 'tiến sĩ', 'phd',
)

ENGLISH_HIGHLIGHT_TERMS: Tuple[str, ...] = (
    'english', 'tiếng anh', 'ielts', 'toeic', 'fluent', 'advanced', 'intermediate', 'basic',
)

# --- smart search (short free-text queries) ---

QUERY_TECH_KEYWORDS: Tuple[str, ...] = (
    'javascript', 'typescript', 'react', 'reactjs', 'nextjs', 'angular', 'vue', 'svelte',
    'node', 'nodejs', 'express', 'nest', 'nestjs', 'graphql', 'rest',
    'java', 'spring', 'springboot', 'spring-boot',
    'python', 'django', 'flask', 'fastapi',
    'php', 'laravel', 'symfony',
    'c#', 'csharp', '.net', 'dotnet', 'asp.net', 'aspnet',
    'c++', 'cpp', 'golang', 'go', 'rust', 'ruby', 'rails',
    'mysql', 'postgres', 'postgresql', 'mssql', 'sqlserver', 'mongodb', 'redis', 'elasticsearch',
    'docker', 'kubernetes', 'k8s', 'terraform', 'ansible',
    'aws', 'azure', 'gcp', 'cloud', 'devops',
    'android', 'ios', 'react native', 'react-native', 'flutter', 'kotlin', 'swift',
    'fullstack', 'full stack', 'frontend', 'front end', 'backend', 'back end',
    'qa', 'tester', 'data', 'ml', 'ai', 'nlp', 'dl', 'machine learning', 'deep learning',
)

QUERY_WORK_MODE_KEYWORDS: Tuple[str, ...] = (
    'remote', 'onsite', 'on-site', 'hybrid', 'từ xa', 'tại văn phòng',
    'full-time', 'fulltime', 'part-time', 'parttime', 'freelance',
    'toàn thời gian', 'bán thời gian',
)

QUERY_INDUSTRY_KEYWORDS: Tuple[str, ...] = (
    'fintech', 'banking', 'ngân hàng', 'e-commerce', 'ecommerce', 'thương mại điện tử',
    'logistics', 'healthcare', 'y tế', 'edtech', 'giáo dục', 'outsourcing', 'startup',
)

QUERY_ROLE_KEYWORDS: Tuple[str, ...] = (
    'intern', 'fresher', 'junior', 'middle', 'mid', 'senior', 'lead', 'leader', 'architect',
    'engineer', 'developer', 'dev', 'tester', 'qa', 'sdet', 'pm', 'product manager', 'scrum master',
)

QUERY_SKILL_KEYWORDS: Tuple[str, ...] = QUERY_TECH_KEYWORDS + QUERY_WORK_MODE_KEYWORDS + QUERY_INDUSTRY_KEYWORDS
