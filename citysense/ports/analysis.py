"""
AI analysis port interface.

This module defines the narrow contract of the external
natural-language analysis service.
"""

from typing import Protocol
from citysense.core.models import AnalysisResult

class AnalysisPort(Protocol):
    """AI 분석 포트 인터페이스"""
    
    async def analyze(self, text: str) -> AnalysisResult:
        """
        텍스트를 분석해 원인과 처치 제안을 반환합니다.
        
        Args:
            text: 분석할 텍스트
            
        Returns:
            분석 결과
        """
        ...
