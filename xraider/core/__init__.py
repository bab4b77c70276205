"""공통 모델, 설정, 저장소"""
