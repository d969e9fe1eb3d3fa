"""CVE 피드 서비스 패키지(CVE feed service package)."""
