"""Security vulnerability rules applied to added lines."""

from commitcraft.models.analysis_models import Severity
from commitcraft.rules.rule_engine import PatternRule

SECURITY_RULES = [
    # CRITICAL: credentials committed in source
    PatternRule(
        rule_id="hardcoded-secret",
        category="Secrets",
        severity=Severity.CRITICAL,
        description="Hardcoded credential assigned to a secret-looking name",
        pattern=r"(api[_-]?key|secret|passw(or)?d|auth[_-]?token|access[_-]?token)\w*\s*[:=]\s*[\"'][^\"'\s]{8,}[\"']",
        ignore_case=True,
    ),
    PatternRule(
        rule_id="private-key",
        category="Secrets",
        severity=Severity.CRITICAL,
        description="Private key material added to the repository",
        pattern=r"-----BEGIN (RSA |EC |DSA |OPENSSH |PGP )?PRIVATE KEY",
    ),
    PatternRule(
        rule_id="aws-access-key",
        category="Secrets",
        severity=Severity.CRITICAL,
        description="AWS access key id",
        pattern=r"\bAKIA[0-9A-Z]{16}\b",
    ),
    # HIGH: code execution and injection
    PatternRule(
        rule_id="eval-usage",
        category="Code Execution",
        severity=Severity.HIGH,
        description="Dynamic evaluation of code with eval()",
        pattern=r"(?<![\w.])eval\s*\(",
    ),
    PatternRule(
        rule_id="shell-injection",
        category="Injection",
        severity=Severity.HIGH,
        description="Shell command built from process input",
        pattern=r"shell\s*=\s*True|\bos\.system\s*\(|\bchild_process\.exec\s*\(",
    ),
    PatternRule(
        rule_id="sql-concatenation",
        category="Injection",
        severity=Severity.HIGH,
        description="SQL statement built by string concatenation",
        pattern=r"\b(select\s.+\sfrom|insert\s+into|update\s+\w+\s+set|delete\s+from)\b.*[\"'`]\s*(\+|%)\s*\w",
        ignore_case=True,
    ),
    PatternRule(
        rule_id="tls-verification-disabled",
        category="Transport",
        severity=Severity.HIGH,
        description="TLS certificate verification disabled",
        pattern=r"verify\s*=\s*False|rejectUnauthorized\s*:\s*false|NODE_TLS_REJECT_UNAUTHORIZED",
    ),
    # MEDIUM
    PatternRule(
        rule_id="unsafe-html",
        category="XSS",
        severity=Severity.MEDIUM,
        description="Raw HTML injection into the DOM",
        pattern=r"\.innerHTML\s*=|dangerouslySetInnerHTML|\bdocument\.write\s*\(",
    ),
    PatternRule(
        rule_id="weak-hash",
        category="Cryptography",
        severity=Severity.MEDIUM,
        description="Weak hash algorithm (MD5/SHA-1)",
        pattern=r"\b(hashlib\.)?(md5|sha1)\s*\(|createHash\([\"'](md5|sha1)[\"']\)",
        ignore_case=True,
    ),
    # LOW
    PatternRule(
        rule_id="insecure-http",
        category="Transport",
        severity=Severity.LOW,
        description="Plain HTTP URL to a non-local host",
        pattern=r"http://(?!localhost|127\.0\.0\.1|0\.0\.0\.0)[\w.-]+",
    ),
]
