"""CVE 피드 애플리케이션 모듈(CVE feed application modules)."""
