"""Google Drive 클라이언트 및 동기화 엔진"""
