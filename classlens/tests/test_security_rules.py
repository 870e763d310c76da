"""Test security vulnerability detection."""

import pytest

from classlens.analysis.models import Severity
from classlens.analyzer import ClassAnalyzer
from classlens.parser_loader import load_parsers


def line_of(code: str, fragment: str) -> int:
    for number, line in enumerate(code.splitlines(), start=1):
        if fragment in line:
            return number
    raise AssertionError(f"{fragment!r} not in sample")


def security_issues(parser, code: str):
    tree = parser.parse(code.encode())
    return ClassAnalyzer().analyze(tree, "Sample.java").security_issues


def of_type(findings, type_: str):
    return [f for f in findings if f.type == type_]


class TestInjection:
    """Test SQL and command injection detection."""

    @pytest.fixture(scope="class")
    def parsers_and_queries(self):
        """Load parsers and queries once for all tests."""
        parsers, queries = load_parsers()
        return parsers, queries

    def test_concatenated_query(self, parsers_and_queries):
        parsers, _ = parsers_and_queries
        code = """
import java.sql.*;

public class Dao {
    public ResultSet find(Statement stmt, String userId) throws SQLException {
        return stmt.executeQuery("SELECT * FROM users WHERE id = '" + userId + "'");
    }
}
"""
        findings = security_issues(parsers["java"], code)
        sql = of_type(findings, "SQL_INJECTION")
        assert len(sql) == 1
        assert sql[0].severity == Severity.CRITICAL
        assert sql[0].line_number == line_of(code, "executeQuery")
        assert sql[0].description == "SQL injection vulnerability - string concatenation in query"
        # The sink line carries no null-dereference finding.
        assert of_type(findings, "NULL_POINTER_DEREFERENCE") == []

    def test_prepared_statement_is_not_flagged(self, parsers_and_queries):
        parsers, _ = parsers_and_queries
        code = """
import java.sql.*;

public class Dao {
    public ResultSet find(Connection conn, String preparedSql) throws SQLException {
        PreparedStatement stmt = conn.prepareStatement(preparedSql);
        return stmt.executeQuery(preparedSql + " LIMIT 1");
    }

    public ResultSet call(Connection conn, String id) throws SQLException {
        return conn.prepareCall("{call find(?)}").executeQuery("x" + id);
    }
}
"""
        findings = security_issues(parsers["java"], code)
        assert of_type(findings, "SQL_INJECTION") == []
        assert of_type(findings, "DYNAMIC_SQL_CONSTRUCTION") == []

    def test_query_built_before_execution(self, parsers_and_queries):
        parsers, _ = parsers_and_queries
        code = """
public class Dao {
    public void rename(java.sql.Statement stmt, String name) throws Exception {
        String query = "UPDATE t SET name = '" + name + "'";
        stmt.execute(query);
    }

    public void refresh(java.sql.Statement stmt) throws Exception {
        String query = "REFRESH";
        stmt.execute(query);
    }
}
"""
        findings = security_issues(parsers["java"], code)
        dynamic = of_type(findings, "DYNAMIC_SQL_CONSTRUCTION")
        assert [f.line_number for f in dynamic] == [line_of(code, "stmt.execute(query);")]
        assert dynamic[0].severity == Severity.CRITICAL
        assert of_type(findings, "SQL_INJECTION") == []

    def test_runtime_exec(self, parsers_and_queries):
        parsers, _ = parsers_and_queries
        code = """
public class Shell {
    public void launch(String cmd) throws Exception {
        Runtime.getRuntime().exec(cmd);
    }

    public void testLaunch() throws Exception {
        Runtime.getRuntime().exec("ls");
    }
}
"""
        findings = security_issues(parsers["java"], code)
        line = line_of(code, "exec(cmd)")
        command = of_type(findings, "COMMAND_INJECTION")
        dangerous = of_type(findings, "DANGEROUS_METHOD_CALL")
        assert [(f.line_number, f.severity) for f in command] == [(line, Severity.HIGH)]
        assert [(f.line_number, f.severity) for f in dangerous] == [(line, Severity.MEDIUM)]

    def test_path_traversal(self, parsers_and_queries):
        parsers, _ = parsers_and_queries
        code = """
import java.io.*;

public class Files {
    public File resolve(String fileName) {
        return new File("/data/" + fileName);
    }

    public Reader open(String userInput) throws IOException {
        return new FileReader(userInput);
    }

    public File config() {
        return new File("/etc/app.conf");
    }
}
"""
        findings = of_type(security_issues(parsers["java"], code), "PATH_TRAVERSAL")
        assert [f.line_number for f in findings] == [
            line_of(code, 'new File("/data/"'),
            line_of(code, "new FileReader(userInput)"),
        ]
        assert all(f.severity == Severity.HIGH for f in findings)


class TestCredentials:
    """Test hardcoded credential and sensitive data detection."""

    @pytest.fixture(scope="class")
    def parsers_and_queries(self):
        """Load parsers and queries once for all tests."""
        parsers, queries = load_parsers()
        return parsers, queries

    def test_hardcoded_field_credential(self, parsers_and_queries):
        parsers, _ = parsers_and_queries
        code = """
public class Settings {
    private String password = "S3cretPass!";
    private String apiKey = "changeme";
    private String dbUser = System.getenv("DB_USER");
    private int retries = 3;
}
"""
        findings = of_type(security_issues(parsers["java"], code), "HARDCODED_CREDENTIALS")
        critical = [f for f in findings if f.severity == Severity.CRITICAL]
        assert [f.line_number for f in critical] == [line_of(code, "password =")]
        assert critical[0].description == "Hardcoded credential found in field: password"
        assert critical[0].vulnerable_snippet == 'password = "S3cretPass!"'

    def test_credential_literal_in_method(self, parsers_and_queries):
        parsers, _ = parsers_and_queries
        code = """
public class Login {
    public void connect() {
        login("admin");
    }

    public void testLogin() {
        login("admin");
    }

    public void configure() {
        String pw = System.getProperty("db.password", "Sup3rSecret");
        login(pw);
    }
}
"""
        findings = of_type(security_issues(parsers["java"], code), "HARDCODED_CREDENTIALS")
        assert [(f.line_number, f.severity) for f in findings] == [(4, Severity.HIGH)]

    def test_sensitive_string_local(self, parsers_and_queries):
        parsers, _ = parsers_and_queries
        code = """
public class Keys {
    public void load() {
        String secretKey = readKey();
        String token = System.getenv("TOKEN");
        String name = readName();
        use(secretKey, token, name);
    }
}
"""
        findings = of_type(security_issues(parsers["java"], code), "SENSITIVE_DATA_EXPOSURE")
        assert [f.line_number for f in findings] == [line_of(code, "secretKey =")]
        assert findings[0].severity == Severity.MEDIUM

    def test_weak_random(self, parsers_and_queries):
        parsers, _ = parsers_and_queries
        code = """
import java.util.Random;

public class Tokens {
    private Random tokenRandom = new Random();

    public long generateToken() {
        Random r = new Random();
        return r.nextLong();
    }

    public int rollDice() {
        Random r = new Random();
        return r.nextInt(6);
    }
}
"""
        findings = of_type(security_issues(parsers["java"], code), "WEAK_RANDOM")
        assert [f.line_number for f in findings] == [
            line_of(code, "tokenRandom"),
            line_of(code, "generateToken") + 1,
        ]


class TestRobustness:
    """Test bounds, casting, exception and null-dereference rules."""

    @pytest.fixture(scope="class")
    def parsers_and_queries(self):
        """Load parsers and queries once for all tests."""
        parsers, queries = load_parsers()
        return parsers, queries

    def test_array_bounds(self, parsers_and_queries):
        parsers, _ = parsers_and_queries
        code = """
public class Arrays {
    public int at(int[] values, int index) {
        return values[index];
    }

    public int safeAt(int[] values, int index) {
        if (index >= 0 && index < values.length) {
            return values[index];
        }
        return -1;
    }

    public int first(int[] values) {
        return values[0];
    }
}
"""
        findings = of_type(security_issues(parsers["java"], code), "ARRAY_BOUNDS_CHECK")
        assert [f.line_number for f in findings] == [line_of(code, "return values[index];")]

    def test_unsafe_cast(self, parsers_and_queries):
        parsers, _ = parsers_and_queries
        code = """
public class Casts {
    public String unsafe(Object obj) {
        return (String) obj;
    }

    public String safe(Object obj) {
        if (obj instanceof String) {
            return (String) obj;
        }
        return "";
    }

    public int narrow(double d) {
        return (int) d;
    }
}
"""
        findings = of_type(security_issues(parsers["java"], code), "UNSAFE_CASTING")
        assert [f.line_number for f in findings] == [line_of(code, "public String unsafe") + 1]
        assert findings[0].severity == Severity.LOW

    def test_catch_blocks(self, parsers_and_queries):
        parsers, _ = parsers_and_queries
        code = """
public class Io {
    public void quiet() {
        try {
            work();
        } catch (Exception e) {
        }
    }

    public void noisy() {
        try {
            work();
        } catch (Exception e) {
            e.printStackTrace();
        }
    }
}
"""
        findings = security_issues(parsers["java"], code)
        empty = of_type(findings, "EMPTY_CATCH_BLOCK")
        poor = of_type(findings, "POOR_EXCEPTION_HANDLING")
        catch_lines = [n for n, line in enumerate(code.splitlines(), 1) if "catch" in line]
        assert [f.line_number for f in empty] == [catch_lines[0]]
        assert [f.line_number for f in poor] == [catch_lines[1]]
        assert of_type(findings, "NULL_POINTER_DEREFERENCE") == []

    def test_null_dereference(self, parsers_and_queries):
        parsers, _ = parsers_and_queries
        code = """
import java.util.Objects;

public class Names {
    private Repository repository;

    public int length(String text) {
        return text.length();
    }

    public int safeLength(String text) {
        if (text != null) {
            return text.length();
        }
        return 0;
    }

    public int nameLength() {
        String name = repository.findName();
        return name.length();
    }

    public void executeCommand(String text) {
        text.trim();
    }

    public void iterate(java.util.List<String> items) {
        Objects.requireNonNull(items);
        items.clear();
    }
}
"""
        findings = of_type(security_issues(parsers["java"], code), "NULL_POINTER_DEREFERENCE")
        assert [f.line_number for f in findings] == [
            line_of(code, "return text.length();"),
            line_of(code, "return name.length();"),
        ]
        assert findings[0].description == "Potential null pointer dereference on variable: text"

    def test_null_dereference_skips_flagged_lines(self, parsers_and_queries):
        parsers, _ = parsers_and_queries
        code = """
public class Mixed {
    public int at(int[] values, int index, String label) {
        return values[index] + label.length();
    }
}
"""
        findings = security_issues(parsers["java"], code)
        assert [f.type for f in findings] == ["ARRAY_BOUNDS_CHECK"]
