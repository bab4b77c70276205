"""
xraider - 학술 문서 수집 및 라이브러리 동기화

arXiv, DOI, PubMed, 웹 페이지, Google Drive 등 여러 소스의 문서를
하나의 중복 없는 로컬 라이브러리로 모읍니다.
"""

__version__ = "0.3.0"
