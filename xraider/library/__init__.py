"""사용자별 문서 라이브러리"""
